"""响应缓存管理 API

使用示例:
    from ycache import create_cache_router

    app = FastAPI()
    app.include_router(
        create_cache_router(service),
        prefix="/api/cache",
        tags=["缓存管理"],
    )
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from .config import CacheSettings
from .sql import (
    build_invalidation_set,
    classify,
    extract_joins,
    extract_relations,
    get_affected_tables,
    get_primary_table,
)


class FlushRequest(BaseModel):
    """失效请求"""
    targets: List[str] = Field(..., min_length=1, description="失效目标（表名或列名）")


class FlushResponse(BaseModel):
    """失效结果"""
    targets: List[str] = Field(default_factory=list)
    purged: int = 0
    available: bool = True


class InspectRequest(BaseModel):
    """SQL 分析请求"""
    sql: str = Field(..., min_length=1, description="待分析的 SQL 语句")


class JoinInfoResponse(BaseModel):
    """JOIN 关系"""
    join_type: str = ""
    left_table: str = ""
    right_table: str = ""
    on_left_column: str = ""
    on_right_column: str = ""


class InspectResponse(BaseModel):
    """SQL 分析结果（不执行任何失效）"""
    operation: str = "NONE"
    primary_table: Optional[str] = None
    joins: List[JoinInfoResponse] = Field(default_factory=list)
    relations: List[str] = Field(default_factory=list)
    affected_tables: List[str] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)


class ReconnectResponse(BaseModel):
    """重连结果"""
    available: bool = False
    error: Optional[Dict[str, Any]] = None


def create_cache_router(service, settings: Optional[CacheSettings] = None) -> APIRouter:
    """创建响应缓存管理路由

    提供以下端点:
        - GET  /stats      缓存统计
        - POST /flush      按目标失效缓存
        - POST /inspect    分析 SQL 语句会失效哪些目标（只分析，不失效）
        - POST /reconnect  重新建立存储连接

    Args:
        service: ResponseCacheService
        settings: 缓存配置，默认使用 service.settings

    Returns:
        APIRouter
    """
    settings = settings or service.settings
    patterns = settings.options.technical_table_patterns
    router = APIRouter()

    @router.get(
        "/stats",
        summary="获取缓存统计",
    )
    def get_stats() -> Dict[str, Any]:
        return service.stats()

    @router.post(
        "/flush",
        summary="失效缓存",
        description="清除键中包含 :target: 的所有缓存",
        response_model=FlushResponse,
    )
    def flush(request: FlushRequest):
        targets = sorted({t for t in request.targets if t})
        purged = service.flush(targets)
        return FlushResponse(targets=targets, purged=purged, available=service.is_available)

    @router.post(
        "/inspect",
        summary="分析 SQL",
        description="返回写语句的类型、主表、JOIN 关系以及按当前失效策略得到的目标",
        response_model=InspectResponse,
    )
    def inspect(request: InspectRequest):
        sql = request.sql
        op = classify(sql)
        joins = extract_joins(sql)
        return InspectResponse(
            operation=op.value,
            primary_table=get_primary_table(sql, op) if op.is_write else None,
            joins=[
                JoinInfoResponse(
                    join_type=join.join_type.value,
                    left_table=join.left_table,
                    right_table=join.right_table,
                    on_left_column=join.on_left_column,
                    on_right_column=join.on_right_column,
                )
                for join in joins
            ],
            relations=extract_relations(sql, patterns),
            affected_tables=get_affected_tables(sql, patterns),
            targets=sorted(build_invalidation_set(sql, settings.to_flush_policy())),
        )

    @router.post(
        "/reconnect",
        summary="重新连接存储",
        response_model=ReconnectResponse,
    )
    def reconnect():
        available = service.reinitialize()
        error = service.last_error
        return ReconnectResponse(
            available=available,
            error=error.to_dict() if error and not available else None,
        )

    return router


__all__ = [
    "create_cache_router",
    "FlushRequest",
    "FlushResponse",
    "InspectRequest",
    "InspectResponse",
    "ReconnectResponse",
]
