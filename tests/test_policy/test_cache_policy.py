"""缓存决策测试"""

import pytest

from ycache.config import CacheSettings
from ycache.policy import CachePolicy, RequestInfo


def _policy(**overrides) -> CachePolicy:
    return CachePolicy(CacheSettings(**overrides))


class TestRequestInfo:
    def test_action(self):
        assert RequestInfo("/x", route_name="orders.search").action == "search"
        assert RequestInfo("/x", route_name="list_orders").action == "list_orders"
        assert RequestInfo("/x").action is None


class TestCachePolicy:
    """测试 CachePolicy.is_cacheable"""

    def test_authenticated_get(self):
        assert _policy().is_cacheable(RequestInfo("/api/orders", "GET", user_id=1)) is True

    def test_guest_not_cached_by_default(self):
        assert _policy().is_cacheable(RequestInfo("/api/orders", "GET")) is False

    def test_guest_cached_when_option_off(self):
        policy = _policy(options={"cache_authenticated_only": False})
        assert policy.is_cacheable(RequestInfo("/api/orders", "GET")) is True

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_writes_not_cached(self, method):
        assert _policy().is_cacheable(RequestInfo("/api/orders", method, user_id=1)) is False

    def test_read_action_on_post(self):
        """路由动作名为 search 的 POST 视为读操作"""
        request = RequestInfo("/api/orders/search", "POST", "orders.search", user_id=1)
        assert _policy().is_cacheable(request) is True

    def test_blacklist_default(self):
        request = RequestInfo("/api/auth/login", "GET", user_id=1)
        assert _policy().is_cacheable(request) is False

    def test_blacklist_wins_over_whitelist(self):
        policy = _policy(
            whitelists={"enabled": True, "routes": ["api/*"]},
            blacklists={"enabled": True, "routes": ["api/auth/*"]},
        )
        assert policy.is_cacheable(RequestInfo("/api/auth/me", "GET", user_id=1)) is False

    def test_whitelist_forces_cache(self):
        policy = _policy(whitelists={"enabled": True, "routes": ["api/public/*"]})
        # 白名单跳过方法和认证检查
        assert policy.is_cacheable(RequestInfo("/api/public/report", "POST")) is True

    def test_namespace_disabled(self):
        policy = _policy(apis={"api": {"enabled": False}})
        assert policy.is_cacheable(RequestInfo("/api/orders", "GET", user_id=1)) is False

    def test_path_outside_namespaces(self):
        policy = _policy(apis={"v1": {"paths": ["api/v1/*"]}})
        assert policy.is_cacheable(RequestInfo("/api/v2/orders", "GET", user_id=1)) is False
        assert policy.is_cacheable(RequestInfo("/api/v1/orders", "GET", user_id=1)) is True

    def test_first_matching_namespace(self):
        policy = _policy(apis={
            "admin": {"enabled": False, "paths": ["api/admin/*"]},
            "api": {"paths": ["*"]},
        })
        assert policy.find_namespace("api/admin/users")[0] == "admin"
        assert policy.is_cacheable(RequestInfo("/api/admin/users", "GET", user_id=1)) is False
        assert policy.is_cacheable(RequestInfo("/api/orders", "GET", user_id=1)) is True

    def test_globally_disabled(self):
        policy = _policy(enabled=False)
        assert policy.is_cacheable(RequestInfo("/api/orders", "GET", user_id=1)) is False
