"""
配置模块
提供缓存组件的默认配置，业务项目可以继承并覆盖
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from ..keys import KeyIdentity, RoutePolicy
from ..sql import DEFAULT_TECHNICAL_TABLE_PATTERNS, FlushPolicy


class KeyIdentifierSettings(BaseSettings):
    """缓存键静态标识配置

    对应模板中的 @PREFIX / @UUID / @NAME，用于区分共享同一个 Redis 的不同应用或部署。

    环境变量:
        YCACHE_KEY_PREFIX=shop_prod_
        YCACHE_KEY_UUID=7f1c...
        YCACHE_KEY_NAME=shop
    """
    prefix: str = Field(default="app_local_", description="键前缀")
    uuid: str = Field(default="-", description="应用实例 UUID")
    name: str = Field(default="-", description="应用名称")

    class Config:
        env_prefix = "YCACHE_KEY_"


class RedisConnectionSettings(BaseSettings):
    """Redis 连接配置

    提供 url 时优先使用 url，否则使用 host/port/password/database。
    """
    url: str = Field(default="", description="Redis连接URL")
    host: str = Field(default="127.0.0.1", description="主机")
    port: int = Field(default=6379, description="端口")
    password: Optional[str] = Field(default=None, description="密码")
    database: int = Field(default=1, description="数据库编号")
    socket_timeout: float = Field(default=2.0, description="读写超时（秒）")

    class Config:
        env_prefix = "YCACHE_REDIS_"


class RouteListSettings(BaseModel):
    """路由白名单 / 黑名单

    routes 支持末尾通配符，如 "api/v1/public/*"；"*" 匹配所有路由。
    """
    enabled: bool = Field(default=False, description="是否启用")
    routes: List[str] = Field(default_factory=list, description="路由模式列表")

    def to_policy(self) -> RoutePolicy:
        return RoutePolicy.of(self.enabled, self.routes)


class FlushSettings(BaseSettings):
    """JOIN 失效策略

    - right_table: 失效 JOIN 右侧表相关的缓存
    - left_table: 失效 JOIN 左侧表相关的缓存
    - on_left: 失效匹配 JOIN 左侧列的缓存
    - on_right: 失效匹配 JOIN 右侧列的缓存
    """
    right_table: bool = Field(default=True, description="失效右表")
    left_table: bool = Field(default=False, description="失效左表")
    on_left: bool = Field(default=False, description="失效左侧关联列")
    on_right: bool = Field(default=False, description="失效右侧关联列")

    class Config:
        env_prefix = "YCACHE_FLUSH_"

    def to_policy(self) -> FlushPolicy:
        return FlushPolicy(
            flush_right_table=self.right_table,
            flush_left_table=self.left_table,
            flush_on_left_column=self.on_left,
            flush_on_right_column=self.on_right,
        )


class ApiNamespaceSettings(BaseModel):
    """单个 API 命名空间的缓存开关

    paths 决定哪些路由属于该命名空间；
    read_methods 中的 HTTP 方法视为读操作；
    路由名最后一段（按 "." 分割）在 read_actions 中时也视为读操作（如 POST .../search）。
    """
    enabled: bool = Field(default=True, description="是否对该命名空间启用缓存")
    paths: List[str] = Field(default_factory=lambda: ["*"], description="路由模式列表")
    read_methods: List[str] = Field(default_factory=lambda: ["GET", "HEAD"], description="读操作的 HTTP 方法")
    read_actions: List[str] = Field(
        default_factory=lambda: ["index", "search", "show"],
        description="视为读操作的路由动作名",
    )


class CacheOptionsSettings(BaseSettings):
    """缓存行为选项"""
    cache_authenticated_only: bool = Field(default=True, description="只缓存已认证用户的请求")
    cache_flush_scan_count: int = Field(default=300, description="失效时每批 SCAN 的数量")
    ttl: int = Field(default=86400, description="缓存过期时间（秒）")
    expose_metadata: bool = Field(default=True, description="在 JSON 响应中附加 cache 元信息")
    skip_tables: List[str] = Field(
        default_factory=lambda: ["migrations", "sessions", "jobs", "failed_jobs"],
        description="写入这些表时不触发失效",
    )
    technical_table_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TECHNICAL_TABLE_PATTERNS),
        description="关联表诊断时过滤的技术表规则（正则）",
    )

    class Config:
        env_prefix = "YCACHE_OPTIONS_"


class CacheSettings(BaseSettings):
    """响应缓存配置

    配置优先级（从高到低）:
        环境变量 > YAML 配置文件 > 代码中的默认值

    使用示例:
        from ycache.config import CacheSettings, load_yaml_config

        settings = load_yaml_config("config/cache.yaml", CacheSettings)

    YAML 配置示例:
        enabled: true
        pattern: default
        key_identifier:
          prefix: shop_prod_
          name: shop
        connection:
          url: redis://localhost:6379/1
        blacklists:
          enabled: true
          routes:
            - api/auth/login
        flush:
          right_table: true
          left_table: false
        controller_model_mapping:
          "list_orders": orders
          "api/v1/reports/*": reports

    环境变量:
        YCACHE_ENABLED=false
        YCACHE_DEBUG=true
        YCACHE_PATTERN=@PREFIX:$PATH:$METHOD:$USER_ID:$QUERY_INPUT
        YCACHE_FLUSH__LEFT_TABLE=true
    """
    enabled: bool = Field(default=True, description="是否启用响应缓存")
    debug: bool = Field(default=False, description="是否输出缓存调试日志")
    pattern: str = Field(default="default", description="缓存键模板，default 使用内置模板")
    listen_queries: bool = Field(default=True, description="是否监听数据库写语句自动失效")

    key_identifier: KeyIdentifierSettings = Field(default_factory=KeyIdentifierSettings)
    connection: RedisConnectionSettings = Field(default_factory=RedisConnectionSettings)
    whitelists: RouteListSettings = Field(
        default_factory=lambda: RouteListSettings(enabled=False, routes=["*"])
    )
    blacklists: RouteListSettings = Field(
        default_factory=lambda: RouteListSettings(enabled=True, routes=["api/auth/login"])
    )
    controller_model_mapping: Dict[str, str] = Field(
        default_factory=dict,
        description="路由名或路由模式 -> 表名的显式映射",
    )
    flush: FlushSettings = Field(default_factory=FlushSettings)
    apis: Dict[str, ApiNamespaceSettings] = Field(
        default_factory=lambda: {"api": ApiNamespaceSettings()},
        description="各 API 命名空间的缓存开关",
    )
    options: CacheOptionsSettings = Field(default_factory=CacheOptionsSettings)

    class Config:
        env_prefix = "YCACHE_"
        env_nested_delimiter = "__"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML 内容以构造参数传入，环境变量需要排在它前面
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def to_flush_policy(self) -> FlushPolicy:
        return self.flush.to_policy()

    def to_key_identity(self) -> KeyIdentity:
        return KeyIdentity(
            prefix=self.key_identifier.prefix,
            uuid=self.key_identifier.uuid,
            name=self.key_identifier.name,
        )

    def whitelist_policy(self) -> RoutePolicy:
        return self.whitelists.to_policy()

    def blacklist_policy(self) -> RoutePolicy:
        return self.blacklists.to_policy()
