"""配置模块

- CacheSettings: 响应缓存配置，支持 YAML + 环境变量
- ConfigLoader / load_yaml_config: YAML 配置加载

配置优先级: 环境变量 > YAML 文件 > 默认值
"""

from .settings import (
    CacheSettings,
    KeyIdentifierSettings,
    RedisConnectionSettings,
    RouteListSettings,
    FlushSettings,
    ApiNamespaceSettings,
    CacheOptionsSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "CacheSettings",
    "KeyIdentifierSettings",
    "RedisConnectionSettings",
    "RouteListSettings",
    "FlushSettings",
    "ApiNamespaceSettings",
    "CacheOptionsSettings",
    "ConfigLoader",
    "load_yaml_config",
]
