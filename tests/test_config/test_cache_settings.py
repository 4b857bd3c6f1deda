"""缓存配置测试"""

from ycache.config import CacheSettings
from ycache.keys import KeyIdentity
from ycache.sql import FlushPolicy


class TestCacheSettingsDefaults:
    """测试默认配置"""

    def test_defaults(self):
        settings = CacheSettings()

        assert settings.enabled is True
        assert settings.pattern == "default"
        assert settings.options.ttl == 86400
        assert settings.options.cache_flush_scan_count == 300
        assert settings.options.cache_authenticated_only is True
        assert settings.connection.database == 1
        assert settings.whitelists.enabled is False
        assert settings.blacklists.routes == ["api/auth/login"]
        assert list(settings.apis) == ["api"]

    def test_flush_policy_defaults(self):
        assert CacheSettings().to_flush_policy() == FlushPolicy(
            flush_right_table=True,
            flush_left_table=False,
            flush_on_left_column=False,
            flush_on_right_column=False,
        )

    def test_key_identity(self):
        settings = CacheSettings(key_identifier={"prefix": "p_", "uuid": "id", "name": "n"})
        assert settings.to_key_identity() == KeyIdentity("p_", "id", "n")

    def test_route_policies(self):
        settings = CacheSettings(whitelists={"enabled": True, "routes": ["api/public/*"]})

        assert settings.whitelist_policy().enabled is True
        assert settings.whitelist_policy().patterns == ("api/public/*",)
        assert settings.blacklist_policy().patterns == ("api/auth/login",)


class TestCacheSettingsEnv:
    """测试环境变量覆盖"""

    def test_top_level(self, monkeypatch):
        monkeypatch.setenv("YCACHE_ENABLED", "false")
        monkeypatch.setenv("YCACHE_PATTERN", "@PREFIX:$PATH:$USER_ID")

        settings = CacheSettings()

        assert settings.enabled is False
        assert settings.pattern == "@PREFIX:$PATH:$USER_ID"

    def test_nested_delimiter(self, monkeypatch):
        monkeypatch.setenv("YCACHE_FLUSH__LEFT_TABLE", "true")
        assert CacheSettings().flush.left_table is True

    def test_section_prefix(self, monkeypatch):
        monkeypatch.setenv("YCACHE_KEY_PREFIX", "shop_prod_")
        monkeypatch.setenv("YCACHE_REDIS_URL", "redis://cache:6379/2")
        monkeypatch.setenv("YCACHE_OPTIONS_TTL", "60")

        settings = CacheSettings()

        assert settings.key_identifier.prefix == "shop_prod_"
        assert settings.connection.url == "redis://cache:6379/2"
        assert settings.options.ttl == 60

    def test_init_wins_over_defaults(self):
        settings = CacheSettings(flush={"right_table": False, "on_left": True})

        policy = settings.to_flush_policy()
        assert policy.flush_right_table is False
        assert policy.flush_on_left_column is True
