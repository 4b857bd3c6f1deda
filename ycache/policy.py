"""缓存决策

判断一个请求的响应是否可以缓存，顺序:
    1. 命中黑名单 -> 不缓存
    2. 命中白名单 -> 缓存
    3. 路由所属的 API 命名空间未配置或未启用 -> 不缓存
    4. 只缓存已认证请求且当前无用户 -> 不缓存
    5. 读操作（HTTP 方法或路由动作名）-> 缓存，否则不缓存
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .config import ApiNamespaceSettings, CacheSettings
from .keys import match_pattern, normalize_path, route_decision


@dataclass(frozen=True)
class RequestInfo:
    """参与缓存决策的请求信息

    Attributes:
        path: 请求路径，开头的 "/" 会被忽略
        method: HTTP 方法
        route_name: 路由名，如 "orders.index"、"OrderController.search"
        user_id: 当前用户 ID，未认证为 None
    """
    path: str
    method: str = "GET"
    route_name: Optional[str] = None
    user_id: Optional[Union[int, str]] = None

    @property
    def action(self) -> Optional[str]:
        """路由名最后一段，如 "orders.search" -> "search" """
        if not self.route_name:
            return None
        return self.route_name.rsplit(".", 1)[-1]


class CachePolicy:
    """缓存决策

    使用示例:
        policy = CachePolicy(settings)
        policy.is_cacheable(RequestInfo("/api/orders", "GET", "orders.index", user_id=7))
    """

    def __init__(self, settings: CacheSettings):
        self.settings = settings
        self._whitelist = settings.whitelist_policy()
        self._blacklist = settings.blacklist_policy()

    def find_namespace(self, path: str) -> Optional[Tuple[str, ApiNamespaceSettings]]:
        """返回路径所属的第一个 API 命名空间"""
        for name, namespace in self.settings.apis.items():
            if any(match_pattern(pattern, path) for pattern in namespace.paths):
                return name, namespace
        return None

    @staticmethod
    def is_read(request: RequestInfo, namespace: ApiNamespaceSettings) -> bool:
        if request.method.upper() in {m.upper() for m in namespace.read_methods}:
            return True
        return request.action is not None and request.action in namespace.read_actions

    def is_cacheable(self, request: RequestInfo) -> bool:
        if not self.settings.enabled:
            return False

        path = normalize_path(request.path)
        decision = route_decision(path, self._whitelist, self._blacklist)
        if decision is not None:
            return decision

        found = self.find_namespace(path)
        if found is None:
            return False
        _, namespace = found
        if not namespace.enabled:
            return False

        if self.settings.options.cache_authenticated_only and request.user_id in (None, ""):
            return False

        return self.is_read(request, namespace)


__all__ = [
    "RequestInfo",
    "CachePolicy",
]
