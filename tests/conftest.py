"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 缓存配置（不依赖环境变量中的 YCACHE_ 配置）
- Redis 桩和缓存存储
- 响应缓存服务
"""

import pytest

from ycache.config import CacheSettings
from ycache.service import ResponseCacheService
from ycache.store import MemoryStore, RedisStore

from tests.helpers import FakeRedis


@pytest.fixture(autouse=True)
def _clear_cache_env(monkeypatch):
    """清除可能影响默认配置的环境变量"""
    import os

    for name in list(os.environ):
        if name.startswith("YCACHE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> CacheSettings:
    """测试用缓存配置"""
    return CacheSettings(
        key_identifier={"prefix": "test_", "uuid": "u1", "name": "shop"},
        options={"cache_flush_scan_count": 2, "ttl": 600},
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis) -> RedisStore:
    return RedisStore(fake_redis, ttl=600)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore(maxsize=1000, ttl=600)


@pytest.fixture
def service(redis_store, settings) -> ResponseCacheService:
    return ResponseCacheService(redis_store, settings)
