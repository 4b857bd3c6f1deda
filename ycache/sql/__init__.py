"""SQL 写语句分析

轻量级的 SQL 检查（不是完整的解析器）：
- classify / get_primary_table: 判断写操作类型并提取主表
- extract_joins: 提取 JOIN 关系
- filter_technical_tables / extract_relations: 过滤中间表后的关联表（诊断用）
- select_flush_targets / build_invalidation_set: 按策略生成失效集合
"""

from .classifier import WriteOp, classify, get_primary_table, strip_identifier
from .joins import JoinType, JoinDescriptor, extract_joins
from .relations import (
    DEFAULT_TECHNICAL_TABLE_PATTERNS,
    filter_technical_tables,
    extract_relations,
    get_affected_tables,
)
from .flush import (
    InvalidationSet,
    FlushPolicy,
    select_flush_targets,
    build_invalidation_set,
)

__all__ = [
    "WriteOp",
    "classify",
    "get_primary_table",
    "strip_identifier",
    "JoinType",
    "JoinDescriptor",
    "extract_joins",
    "DEFAULT_TECHNICAL_TABLE_PATTERNS",
    "filter_technical_tables",
    "extract_relations",
    "get_affected_tables",
    "InvalidationSet",
    "FlushPolicy",
    "select_flush_targets",
    "build_invalidation_set",
]
