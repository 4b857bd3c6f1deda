"""响应缓存一站式设置模块

提供 setup_response_cache() 便捷函数，一行代码完成存储、服务、失效监听和中间件的装配。

使用示例:

    级别1：零配置::

        from ycache import setup_response_cache

        cache = setup_response_cache(app, engine=engine)

    级别2：从 YAML 加载配置并按模型解析资源名::

        from ycache import CacheSettings, load_yaml_config, setup_response_cache

        settings = load_yaml_config("config/settings.yaml", CacheSettings, section="cache")
        cache = setup_response_cache(
            app,
            engine=engine,
            settings=settings,
            model_base=Base,
            user_id_getter=get_user_id,
            api_prefix="/api/cache",
        )

    级别3：注入已有存储（测试 / 单进程部署）::

        from ycache.store import MemoryStore

        cache = setup_response_cache(app, store=MemoryStore())
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .api import create_cache_router
from .config import CacheSettings
from .invalidation import WriteQueryListener
from .log import get_logger, setup_cache_logger
from .middleware import ResponseCacheMiddleware
from .resolvers import (
    ChainResourceResolver,
    MappingResourceResolver,
    ResourceTableResolver,
    SQLAlchemyModelResolver,
)
from .service import ResponseCacheService
from .store import CacheStore

logger = get_logger()


@dataclass
class ResponseCacheSetup:
    """setup_response_cache() 的结果"""
    settings: CacheSettings
    service: ResponseCacheService
    resolver: ChainResourceResolver
    listener: Optional[WriteQueryListener] = None


def setup_response_cache(
    app,
    engine=None,
    settings: Optional[CacheSettings] = None,
    store: Optional[CacheStore] = None,
    model_base=None,
    resolvers: Optional[List[ResourceTableResolver]] = None,
    user_id_getter: Optional[Callable] = None,
    api_prefix: Optional[str] = None,
    api_tags: Optional[list] = None,
    api_dependencies: Optional[list] = None,
    configure_logging: bool = True,
) -> ResponseCacheSetup:
    """一站式响应缓存设置

    自动完成以下步骤：
    1. 按 settings.debug 配置 ycache 日志器
    2. 创建存储（未提供 store 时按 settings.connection 连接 Redis）和 ResponseCacheService
    3. 组装资源名解析器：显式映射 -> 自定义解析器 -> SQLAlchemy 模型
    4. 提供 engine 且 listen_queries 打开时，注册写语句监听
    5. 添加 ResponseCacheMiddleware
    6. （可选）提供 api_prefix 时挂载缓存管理路由

    Args:
        app: FastAPI 应用实例
        engine: SQLAlchemy Engine（可选）
        settings: 缓存配置，默认 CacheSettings()（读取环境变量）
        store: 已有的缓存存储（可选），提供时不连接 Redis
        model_base: SQLAlchemy 声明式基类（可选），用于按模型名解析资源
        resolvers: 额外的资源名解析器，位于显式映射之后、模型解析之前
        user_id_getter: 用户 ID 获取函数，接收 scope
        api_prefix: 管理路由前缀，不提供则不挂载
        api_tags: 管理路由 OpenAPI 标签
        api_dependencies: 管理路由依赖（如管理员权限校验）
        configure_logging: 是否按 settings.debug 配置日志器

    Returns:
        ResponseCacheSetup
    """
    settings = settings or CacheSettings()
    if configure_logging:
        setup_cache_logger(settings)

    if store is not None:
        service = ResponseCacheService(store, settings)
    else:
        service = ResponseCacheService.from_settings(settings)

    if settings.enabled and not service.is_available:
        logger.warning(f"响应缓存存储不可用，请求将直接放行: {service.last_error}")

    resolver = ChainResourceResolver(MappingResourceResolver(settings.controller_model_mapping))
    for extra in resolvers or []:
        resolver.add(extra)
    if model_base is not None:
        resolver.add(SQLAlchemyModelResolver(model_base))

    listener = None
    if engine is not None and settings.listen_queries:
        listener = WriteQueryListener(service).attach(engine)

    app.add_middleware(
        ResponseCacheMiddleware,
        service=service,
        resolver=resolver,
        user_id_getter=user_id_getter,
    )

    if api_prefix:
        app.include_router(
            create_cache_router(service, settings),
            prefix=api_prefix,
            tags=api_tags or ["缓存管理"],
            dependencies=api_dependencies or [],
        )
        logger.info(f"缓存管理路由已挂载: {api_prefix}")

    return ResponseCacheSetup(
        settings=settings,
        service=service,
        resolver=resolver,
        listener=listener,
    )


__all__ = [
    "ResponseCacheSetup",
    "setup_response_cache",
]
