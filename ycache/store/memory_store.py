"""内存缓存存储

基于 cachetools.TTLCache 实现，支持 per-key TTL 和与 Redis 相同语义的 glob SCAN。
适用于测试和单进程部署。

使用示例:
    store = MemoryStore(maxsize=10000, ttl=300)
    store.set(":shop:orders:GET:7:-:-", '{"data": []}', ttl=60)
"""

import fnmatch
import itertools
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

from cachetools import TTLCache

from ..exceptions import CacheResult
from ..log import get_logger
from .base import CacheStats, CacheStore

logger = get_logger()

# 未遍历完就被放弃的 cursor 上限，超过后全部丢弃
_MAX_OPEN_CURSORS = 64


class _ExpiringValue:
    """值包装器，支持独立于 TTLCache 的自定义过期时间

    TTLCache 的全局 TTL 作为最大上限，此包装器提供更短的自定义过期。
    """
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float):
        self.value = value
        self.expires_at = expires_at


class MemoryStore(CacheStore):
    """内存缓存存储

    Args:
        maxsize: 最大缓存条目数
        ttl: 默认过期时间（秒），也是 per-key TTL 的上限
        enable_stats: 是否启用统计
    """

    def __init__(
        self,
        maxsize: int = 10000,
        ttl: int = 86400,
        enable_stats: bool = True
    ):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._default_ttl = ttl
        self._maxsize = maxsize
        self._lock = threading.RLock()
        self._stats = CacheStats() if enable_stats else None
        self._cursors: Dict[int, List[str]] = {}
        self._cursor_ids = itertools.count(1)

        logger.debug(f"MemoryStore initialized: maxsize={maxsize}, ttl={ttl}")

    def _read(self, key: str) -> Optional[Any]:
        raw = self._cache.get(key)
        if isinstance(raw, _ExpiringValue):
            if time.monotonic() >= raw.expires_at:
                del self._cache[key]
                return None
            return raw.value
        return raw

    def get(self, key: str) -> CacheResult[Optional[str]]:
        with self._lock:
            value = self._read(key)
            if self._stats:
                if value is None:
                    self._stats.record_miss()
                else:
                    self._stats.record_hit()
            return CacheResult.success(value)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> CacheResult[None]:
        with self._lock:
            effective_ttl = ttl if ttl is not None else self._default_ttl
            if effective_ttl != self._default_ttl:
                self._cache[key] = _ExpiringValue(value, time.monotonic() + effective_ttl)
            else:
                self._cache[key] = value
            if self._stats:
                self._stats.record_set()
            return CacheResult.success()

    def exists(self, key: str) -> CacheResult[bool]:
        with self._lock:
            return CacheResult.success(self._read(key) is not None)

    def scan(self, cursor: int, match: str, count: int) -> CacheResult[Tuple[int, List[str]]]:
        """分页遍历匹配 match 的键

        cursor 为 0 时对当前键做一次快照，后续 cursor 指向快照中剩余的部分，
        因此遍历期间删除键不会导致其他键被跳过。
        """
        with self._lock:
            if cursor == 0:
                pending = list(self._cache.keys())
            else:
                pending = self._cursors.pop(cursor, [])

            size = max(count, 1)
            page, rest = pending[:size], pending[size:]

            next_cursor = 0
            if rest:
                if len(self._cursors) >= _MAX_OPEN_CURSORS:
                    self._cursors.clear()
                next_cursor = next(self._cursor_ids)
                self._cursors[next_cursor] = rest

            matched = [
                k for k in page
                if k in self._cache and fnmatch.fnmatchcase(k, match)
            ]
            return CacheResult.success((next_cursor, matched))

    def delete(self, *keys: str) -> CacheResult[int]:
        with self._lock:
            deleted = 0
            for key in keys:
                if key in self._cache:
                    del self._cache[key]
                    deleted += 1
            if self._stats:
                self._stats.record_purge(deleted)
            return CacheResult.success(deleted)

    def ping(self) -> CacheResult[bool]:
        return CacheResult.success(True)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._cache.keys())

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._cursors.clear()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = {
                "backend": "memory",
                "size": len(self._cache),
                "maxsize": self._maxsize,
                "ttl": self._default_ttl,
            }
            if self._stats:
                stats.update(self._stats.to_dict())
            return stats


__all__ = [
    "MemoryStore",
]
