"""路由白名单 / 黑名单匹配

规则:
    - 模式末尾可以带一个 "*"，表示任意后缀；"*" 单独使用匹配所有路由
    - 其余部分做精确、锚定、区分大小写的比较
    - 同时命中白名单和黑名单时，黑名单优先
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class RoutePolicy:
    """白名单或黑名单配置"""
    enabled: bool = False
    patterns: Tuple[str, ...] = ()

    @classmethod
    def of(cls, enabled: bool, patterns: Iterable[str]) -> "RoutePolicy":
        return cls(enabled=enabled, patterns=tuple(patterns))


@lru_cache(maxsize=512)
def _compile_pattern(pattern: str) -> "re.Pattern":
    if pattern.endswith("*"):
        return re.compile(re.escape(pattern[:-1]) + r".*\Z", re.DOTALL)
    return re.compile(re.escape(pattern) + r"\Z")


def normalize_path(path: str) -> str:
    """去掉路径开头的 "/"，与配置中 "api/v1/..." 的写法保持一致"""
    return path.lstrip("/")


def match_pattern(pattern: str, path: str) -> bool:
    """判断路径是否匹配模式

    使用示例:
        match_pattern("api/v1/public/*", "api/v1/public/42")   # True
        match_pattern("api/auth/login", "api/auth/login2")     # False
    """
    return _compile_pattern(pattern).match(path) is not None


def _matches_any(path: str, policy: RoutePolicy) -> bool:
    if not policy.enabled:
        return False
    return any(match_pattern(pattern, path) for pattern in policy.patterns)


def is_whitelisted(path: str, policy: RoutePolicy) -> bool:
    """路由是否在白名单中（白名单未启用时总是 False）"""
    return _matches_any(path, policy)


def is_blacklisted(path: str, policy: RoutePolicy) -> bool:
    """路由是否在黑名单中（黑名单未启用时总是 False）"""
    return _matches_any(path, policy)


def route_decision(
    path: str,
    whitelist: RoutePolicy,
    blacklist: RoutePolicy,
) -> Optional[bool]:
    """根据黑白名单给出缓存决策

    Returns:
        False: 命中黑名单，永远不缓存
        True: 未命中黑名单且命中白名单，强制缓存
        None: 都未命中，由调用方继续按方法 / 角色判断
    """
    if is_blacklisted(path, blacklist):
        return False
    if is_whitelisted(path, whitelist):
        return True
    return None


__all__ = [
    "RoutePolicy",
    "normalize_path",
    "match_pattern",
    "is_whitelisted",
    "is_blacklisted",
    "route_decision",
]
