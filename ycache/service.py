"""响应缓存服务

持有注入的缓存存储，对外提供读 / 写 / 失效操作。
任何存储错误都不会抛出：第一次失败后存储被丢弃，
之后所有操作都退化为"不缓存、直接放行"，直到调用 reinitialize()。

使用示例:
    from ycache import ResponseCacheService, CacheSettings
    from ycache.store import create_redis_store

    settings = CacheSettings()
    service = ResponseCacheService.from_settings(settings)

    payload = service.fetch(key)
    if payload is None:
        service.store(key, body)

    service.flush({"orders", "customers"})
"""

import threading
from typing import Any, Callable, Dict, Iterable, Optional

from .config import CacheSettings
from .exceptions import CacheError, CacheResult
from .invalidation import InvalidationExecutor
from .log import get_logger
from .store import CacheStore, create_redis_store

logger = get_logger()

StoreFactory = Callable[[], CacheResult[CacheStore]]


class ResponseCacheService:
    """响应缓存服务

    Args:
        store: 缓存存储，None 表示当前不可用
        settings: 缓存配置
        store_factory: reinitialize() 时用于重新创建存储的工厂函数
    """

    def __init__(
        self,
        store: Optional[CacheStore],
        settings: Optional[CacheSettings] = None,
        store_factory: Optional[StoreFactory] = None,
    ):
        self.settings = settings or CacheSettings()
        self._store = store
        self._store_factory = store_factory
        self._lock = threading.RLock()
        self._last_error: Optional[CacheError] = None
        self._purged_total = 0

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "ResponseCacheService":
        """按配置连接 Redis 创建服务，连接失败时服务处于不可用状态"""
        def factory() -> CacheResult[CacheStore]:
            return create_redis_store(settings.connection, ttl=settings.options.ttl)

        service = cls(None, settings, store_factory=factory)
        if settings.enabled:
            service.reinitialize()
        return service

    @property
    def is_available(self) -> bool:
        return self.settings.enabled and self._store is not None

    @property
    def last_error(self) -> Optional[CacheError]:
        return self._last_error

    def _discard(self, error: CacheError):
        with self._lock:
            self._store = None
            self._last_error = error
        logger.debug(f"Cache store discarded: {error.code}: {error.message}")

    def _current_store(self) -> Optional[CacheStore]:
        if not self.settings.enabled:
            return None
        return self._store

    def fetch(self, key: str) -> Optional[str]:
        """读取缓存，未命中或存储不可用时返回 None"""
        store = self._current_store()
        if store is None:
            return None
        result = store.get(key)
        if not result.ok:
            self._discard(result.error)
            return None
        return result.value

    def store(self, key: str, payload: str, ttl: Optional[int] = None) -> bool:
        """写入缓存，返回是否成功"""
        store = self._current_store()
        if store is None:
            return False
        result = store.set(key, payload, ttl or self.settings.options.ttl)
        if not result.ok:
            self._discard(result.error)
            return False
        return True

    def delete(self, target: str) -> int:
        """清除包含 ":target:" 的所有键"""
        return self.flush([target])

    def flush(self, targets: Iterable[str]) -> int:
        """清除失效集合中所有目标匹配的键，返回删除数量"""
        store = self._current_store()
        if store is None:
            return 0
        targets = [t for t in targets if t]
        if not targets:
            return 0

        executor = InvalidationExecutor(store, self.settings.options.cache_flush_scan_count)
        result = executor.purge(targets)
        if not result.ok:
            self._discard(result.error)
            return 0

        with self._lock:
            self._purged_total += result.value
        return result.value

    def reinitialize(self, store: Optional[CacheStore] = None) -> bool:
        """重新建立存储

        Args:
            store: 直接替换为给定的存储；不传时使用 store_factory 重新创建，
                   两者都没有时保留当前存储

        Returns:
            服务是否可用
        """
        if store is None and self._store_factory is None:
            logger.debug(f"No store factory, keep current store: available={self.is_available}")
            return self.is_available

        if store is None:
            result = self._store_factory()
            if not result.ok:
                self._discard(result.error)
                return False
            store = result.value

        with self._lock:
            self._store = store
            self._last_error = None

        logger.debug(f"Cache store reinitialized: available={self.is_available}")
        return self.is_available

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "enabled": self.settings.enabled,
            "available": self.is_available,
            "purged_total": self._purged_total,
            "last_error": self._last_error.to_dict() if self._last_error else None,
        }
        store = self._store
        if store is not None:
            stats["store"] = store.get_stats()
        return stats


__all__ = [
    "ResponseCacheService",
    "StoreFactory",
]
