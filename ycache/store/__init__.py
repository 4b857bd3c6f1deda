"""缓存存储

- CacheStore: 存储抽象（get / set / exists / scan / delete / ping）
- RedisStore / create_redis_store: Redis 实现
- MemoryStore: 基于 cachetools 的内存实现
"""

from .base import CacheStats, CacheStore
from .redis_store import RedisStore, create_redis_store
from .memory_store import MemoryStore

__all__ = [
    "CacheStats",
    "CacheStore",
    "RedisStore",
    "create_redis_store",
    "MemoryStore",
]
