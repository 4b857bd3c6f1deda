"""Redis 缓存存储

使用示例:
    import redis
    from ycache.store import RedisStore, create_redis_store

    # 直接包装已有客户端
    store = RedisStore(redis.Redis(host="localhost", port=6379, db=1))

    # 按配置创建（连接失败返回失败结果，不抛异常）
    result = create_redis_store(settings.connection)
    store = result.value if result.ok else None
"""

from typing import Any, Dict, List, Optional, Tuple

import redis

from ..exceptions import CacheResult, StoreOperationError, StoreUnavailableError
from ..log import get_logger
from .base import CacheStats, CacheStore

logger = get_logger()


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisStore(CacheStore):
    """Redis 缓存存储

    所有驱动异常都被捕获并转换为 CacheResult 失败结果。

    Args:
        redis_client: redis.Redis 客户端实例（或兼容的对象）
        ttl: 默认过期时间（秒）
        enable_stats: 是否启用统计
    """

    def __init__(
        self,
        redis_client,
        ttl: int = 86400,
        enable_stats: bool = True,
    ):
        self._redis = redis_client
        self._default_ttl = ttl
        self._stats = CacheStats() if enable_stats else None

        logger.debug(f"RedisStore initialized: ttl={ttl}")

    @property
    def client(self):
        return self._redis

    def _fail(self, operation: str, exc: Exception) -> CacheResult:
        if self._stats:
            self._stats.record_error()
        logger.debug(f"Redis {operation} error: {type(exc).__name__}: {exc}")
        return CacheResult.failure(StoreOperationError(operation, exc))

    def get(self, key: str) -> CacheResult[Optional[str]]:
        try:
            data = self._redis.get(key)
        except Exception as e:
            return self._fail("get", e)

        if self._stats:
            if data is None:
                self._stats.record_miss()
            else:
                self._stats.record_hit()
        return CacheResult.success(_text(data))

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> CacheResult[None]:
        try:
            self._redis.setex(key, ttl or self._default_ttl, value)
        except Exception as e:
            return self._fail("set", e)

        if self._stats:
            self._stats.record_set()
        return CacheResult.success()

    def exists(self, key: str) -> CacheResult[bool]:
        try:
            return CacheResult.success(bool(self._redis.exists(key)))
        except Exception as e:
            return self._fail("exists", e)

    def scan(self, cursor: int, match: str, count: int) -> CacheResult[Tuple[int, List[str]]]:
        try:
            next_cursor, keys = self._redis.scan(cursor, match=match, count=count)
        except Exception as e:
            return self._fail("scan", e)
        return CacheResult.success((int(next_cursor), [_text(k) for k in keys]))

    def delete(self, *keys: str) -> CacheResult[int]:
        if not keys:
            return CacheResult.success(0)
        try:
            deleted = int(self._redis.delete(*keys) or 0)
        except Exception as e:
            return self._fail("delete", e)

        if self._stats:
            self._stats.record_purge(deleted)
        return CacheResult.success(deleted)

    def ping(self) -> CacheResult[bool]:
        try:
            return CacheResult.success(bool(self._redis.ping()))
        except Exception as e:
            return self._fail("ping", e)

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "backend": "redis",
            "ttl": self._default_ttl,
        }
        if self._stats:
            stats.update(self._stats.to_dict())
        return stats


def create_redis_store(connection: Any, ttl: int = 86400) -> CacheResult[RedisStore]:
    """按连接配置创建 RedisStore

    建立连接、选择数据库并 PING 一次，任何一步失败都返回 StoreUnavailableError。

    Args:
        connection: RedisConnectionSettings（或具有相同属性的对象）
        ttl: 默认过期时间（秒）
    """
    try:
        timeout = getattr(connection, "socket_timeout", None)
        url = getattr(connection, "url", "")
        if url:
            # 数据库编号由 url 中的路径指定，如 redis://localhost:6379/1
            client = redis.Redis.from_url(
                url,
                socket_timeout=timeout,
                decode_responses=True,
            )
        else:
            client = redis.Redis(
                host=getattr(connection, "host", "127.0.0.1"),
                port=getattr(connection, "port", 6379),
                password=getattr(connection, "password", None),
                db=getattr(connection, "database", 0),
                socket_timeout=timeout,
                decode_responses=True,
            )
        client.ping()
    except Exception as e:
        logger.debug(f"Redis connection setup failed: {type(e).__name__}: {e}")
        return CacheResult.failure(StoreUnavailableError(
            f"Redis 连接失败: {e}",
            details={"exception": type(e).__name__},
        ))

    return CacheResult.success(RedisStore(client, ttl=ttl))


__all__ = [
    "RedisStore",
    "create_redis_store",
]
