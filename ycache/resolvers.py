"""资源名解析

把路由名（或控制器名）解析为缓存键中使用的表名（$PATH）。
解析不到资源的请求不会被缓存。

使用示例:
    from ycache.resolvers import (
        ChainResourceResolver, MappingResourceResolver, SQLAlchemyModelResolver,
    )

    resolver = ChainResourceResolver(
        MappingResourceResolver({"list_reports": "reports", "api/v1/stats/*": "stats"}),
        SQLAlchemyModelResolver(Base),
    )
    resolver.resolve("OrderController.index")   # "orders"
"""

import re
import threading
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from .keys import match_pattern
from .log import get_logger

logger = get_logger()


@runtime_checkable
class ResourceTableResolver(Protocol):
    """资源名解析接口"""

    def resolve(self, name: str) -> Optional[str]:
        """返回 name 对应的表名，无法解析时返回 None"""
        ...


class MappingResourceResolver:
    """按显式映射解析

    先精确匹配，再按配置顺序匹配带 "*" 的模式。
    """

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._mapping: Dict[str, str] = dict(mapping or {})

    def resolve(self, name: str) -> Optional[str]:
        if not name:
            return None
        if name in self._mapping:
            return self._mapping[name]
        for pattern, table in self._mapping.items():
            if pattern.endswith("*") and match_pattern(pattern, name):
                return table
        return None


_CONTROLLER_SUFFIXES = ("Controller", "Router", "_controller", "_router")


def _normalize(name: str) -> str:
    return re.sub(r"[_\-\s]", "", name).lower()


def _inflections(word: str) -> List[str]:
    """单复数候选，覆盖常见的英文规则"""
    candidates = [word]
    if word.endswith("ies"):
        candidates.append(word[:-3] + "y")
    elif word.endswith(("ses", "xes", "ches", "shes")):
        candidates.append(word[:-2])
    elif word.endswith("s"):
        candidates.append(word[:-1])
    else:
        if word.endswith("y") and word[-2:-1] not in "aeiou":
            candidates.append(word[:-1] + "ies")
        elif word.endswith(("s", "x", "ch", "sh")):
            candidates.append(word + "es")
        candidates.append(word + "s")
    return candidates


def controller_base_name(name: str) -> str:
    """去掉控制器后缀，如 OrderController.index -> Order，orders.index -> orders"""
    base = name.split(".")[0]
    for suffix in _CONTROLLER_SUFFIXES:
        if base.endswith(suffix) and base != suffix:
            return base[: -len(suffix)]
    return base


class SQLAlchemyModelResolver:
    """按 SQLAlchemy 声明式模型解析

    去掉 Controller / Router 后缀后，按单数和复数形式查找同名模型类（或同名表），
    返回模型的 __tablename__。

    Args:
        base: 声明式基类（DeclarativeBase 子类或 declarative_base() 的返回值）
    """

    def __init__(self, base):
        self._base = base
        self._index: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def _build_index(self) -> Dict[str, str]:
        index: Dict[str, str] = {}
        for mapper in self._base.registry.mappers:
            cls = mapper.class_
            table = getattr(cls, "__tablename__", None)
            if not table:
                continue
            index.setdefault(_normalize(cls.__name__), table)
            index.setdefault(_normalize(table), table)
        logger.debug(f"Model index built: {len(index)} names")
        return index

    def refresh(self):
        """模型变化后重建索引"""
        with self._lock:
            self._index = None

    def resolve(self, name: str) -> Optional[str]:
        if not name:
            return None
        with self._lock:
            if self._index is None:
                self._index = self._build_index()
            index = self._index

        base = _normalize(controller_base_name(name))
        if not base:
            return None
        for candidate in _inflections(base):
            if candidate in index:
                return index[candidate]
        return None


class ChainResourceResolver:
    """依次尝试多个解析器，返回第一个结果"""

    def __init__(self, *resolvers: ResourceTableResolver):
        self._resolvers = list(resolvers)

    def add(self, resolver: ResourceTableResolver) -> "ChainResourceResolver":
        self._resolvers.append(resolver)
        return self

    def resolve(self, name: str) -> Optional[str]:
        for resolver in self._resolvers:
            table = resolver.resolve(name)
            if table:
                return table
        return None

    def resolve_any(self, names: Iterable[str]) -> Optional[str]:
        """按顺序解析多个候选名"""
        for name in names:
            table = self.resolve(name)
            if table:
                return table
        return None


__all__ = [
    "ResourceTableResolver",
    "MappingResourceResolver",
    "SQLAlchemyModelResolver",
    "ChainResourceResolver",
    "controller_base_name",
]
