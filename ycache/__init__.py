"""ycache - Redis 响应缓存与自动失效

- 按模板生成确定性的缓存键，缓存可缓存请求的 JSON 响应
- 监听数据库写语句，按 JOIN 关系和失效策略清除相关缓存
- 存储不可用时请求直接放行，缓存失败永远不会导致请求失败

使用示例:
    from fastapi import FastAPI
    from ycache import setup_response_cache

    app = FastAPI()
    cache = setup_response_cache(app, engine=engine, model_base=Base)
"""

from .version import __version__, __author__, __description__

from .config import CacheSettings, ConfigLoader, load_yaml_config
from .exceptions import (
    CacheError,
    CacheConfigError,
    StoreUnavailableError,
    StoreOperationError,
    CacheResult,
)
from .keys import (
    DEFAULT_KEY_TEMPLATE,
    KeyIdentity,
    RequestContext,
    generate_key,
    RoutePolicy,
    match_pattern,
    is_whitelisted,
    is_blacklisted,
    route_decision,
)
from .sql import (
    WriteOp,
    classify,
    get_primary_table,
    JoinType,
    JoinDescriptor,
    extract_joins,
    filter_technical_tables,
    extract_relations,
    get_affected_tables,
    FlushPolicy,
    select_flush_targets,
    build_invalidation_set,
)
from .store import CacheStore, RedisStore, MemoryStore, create_redis_store
from .invalidation import (
    target_pattern,
    InvalidationExecutor,
    WriteQueryListener,
    InvalidationContext,
)
from .resolvers import (
    ResourceTableResolver,
    MappingResourceResolver,
    SQLAlchemyModelResolver,
    ChainResourceResolver,
)
from .policy import CachePolicy, RequestInfo
from .service import ResponseCacheService
from .middleware import ResponseCacheMiddleware
from .api import create_cache_router
from .setup import ResponseCacheSetup, setup_response_cache

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    # 配置
    "CacheSettings",
    "ConfigLoader",
    "load_yaml_config",
    # 异常
    "CacheError",
    "CacheConfigError",
    "StoreUnavailableError",
    "StoreOperationError",
    "CacheResult",
    # 缓存键 / 路由规则
    "DEFAULT_KEY_TEMPLATE",
    "KeyIdentity",
    "RequestContext",
    "generate_key",
    "RoutePolicy",
    "match_pattern",
    "is_whitelisted",
    "is_blacklisted",
    "route_decision",
    # SQL 分析
    "WriteOp",
    "classify",
    "get_primary_table",
    "JoinType",
    "JoinDescriptor",
    "extract_joins",
    "filter_technical_tables",
    "extract_relations",
    "get_affected_tables",
    "FlushPolicy",
    "select_flush_targets",
    "build_invalidation_set",
    # 存储
    "CacheStore",
    "RedisStore",
    "MemoryStore",
    "create_redis_store",
    # 失效
    "target_pattern",
    "InvalidationExecutor",
    "WriteQueryListener",
    "InvalidationContext",
    # 资源名解析
    "ResourceTableResolver",
    "MappingResourceResolver",
    "SQLAlchemyModelResolver",
    "ChainResourceResolver",
    # 服务 / 中间件 / API
    "CachePolicy",
    "RequestInfo",
    "ResponseCacheService",
    "ResponseCacheMiddleware",
    "create_cache_router",
    "ResponseCacheSetup",
    "setup_response_cache",
]
