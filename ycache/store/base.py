"""缓存存储抽象

组件只依赖 get / set(带 TTL) / exists / scan / delete 几个原语，
每个操作都返回 CacheResult，驱动层异常在这里被转换为失败结果。
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import CacheResult


@dataclass
class CacheStats:
    """缓存统计信息（本地统计，非分布式）"""
    hits: int = 0
    misses: int = 0
    sets: int = 0
    purged_keys: int = 0
    errors: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def hit_rate(self) -> float:
        """命中率"""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record_hit(self):
        with self._lock:
            self.hits += 1

    def record_miss(self):
        with self._lock:
            self.misses += 1

    def record_set(self):
        with self._lock:
            self.sets += 1

    def record_purge(self, count: int):
        with self._lock:
            self.purged_keys += count

    def record_error(self):
        with self._lock:
            self.errors += 1

    def reset(self):
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.sets = 0
            self.purged_keys = 0
            self.errors = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "purged_keys": self.purged_keys,
            "errors": self.errors,
            "hit_rate": f"{self.hit_rate:.2%}",
        }


class CacheStore(ABC):
    """缓存存储抽象基类

    scan 的 cursor 语义与 Redis 一致：从 0 开始，返回的 cursor 为 0 表示遍历结束。
    """

    @abstractmethod
    def get(self, key: str) -> CacheResult[Optional[str]]:
        """获取缓存值，不存在时 value 为 None"""

    @abstractmethod
    def set(self, key: str, value: str, ttl: Optional[int] = None) -> CacheResult[None]:
        """设置缓存值"""

    @abstractmethod
    def exists(self, key: str) -> CacheResult[bool]:
        """键是否存在"""

    @abstractmethod
    def scan(self, cursor: int, match: str, count: int) -> CacheResult[Tuple[int, List[str]]]:
        """增量遍历匹配 match（glob）的键"""

    @abstractmethod
    def delete(self, *keys: str) -> CacheResult[int]:
        """删除键，返回实际删除的数量"""

    @abstractmethod
    def ping(self) -> CacheResult[bool]:
        """检查存储是否可用"""

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """获取统计信息"""


__all__ = [
    "CacheStats",
    "CacheStore",
]
