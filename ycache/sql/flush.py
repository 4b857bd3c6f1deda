"""失效目标选择

根据 FlushPolicy 从 JOIN 关系中挑选需要失效的表名 / 列名，
再加上写语句的主表，得到去重后的失效集合。

使用示例:
    policy = FlushPolicy(flush_right_table=True)
    build_invalidation_set(
        "UPDATE orders SET x=1 WHERE id IN "
        "(SELECT order_id FROM order_items JOIN products ON order_items.product_id = products.id)",
        policy,
    )
    # frozenset({"orders", "products"})
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from .classifier import classify, get_primary_table
from .joins import JoinDescriptor, extract_joins


InvalidationSet = FrozenSet[str]


@dataclass(frozen=True)
class FlushPolicy:
    """JOIN 失效策略，四个开关相互独立，可以任意组合"""
    flush_right_table: bool = True
    flush_left_table: bool = False
    flush_on_left_column: bool = False
    flush_on_right_column: bool = False


def select_flush_targets(
    joins: Iterable[JoinDescriptor],
    policy: FlushPolicy,
    primary_table: Optional[str] = None,
) -> InvalidationSet:
    """按策略选出失效目标

    调用方需要先确认语句是写操作（classify(sql) != WriteOp.NONE）。

    Args:
        joins: JOIN 关系列表
        policy: 失效策略
        primary_table: 主表，提供时无条件加入结果

    Returns:
        失效目标集合，不包含空字符串
    """
    targets = set()
    for join in joins:
        if policy.flush_right_table:
            targets.add(join.right_table)
        if policy.flush_left_table:
            targets.add(join.left_table)
        if policy.flush_on_left_column:
            targets.add(join.on_left_column)
        if policy.flush_on_right_column:
            targets.add(join.on_right_column)

    if primary_table:
        targets.add(primary_table)

    targets.discard("")
    return frozenset(targets)


def build_invalidation_set(sql: str, policy: FlushPolicy) -> InvalidationSet:
    """分析一条 SQL 语句，返回需要失效的目标集合

    非写语句、或既没有主表也没有 JOIN 时返回空集合。
    """
    op = classify(sql)
    if not op.is_write:
        return frozenset()

    return select_flush_targets(
        extract_joins(sql),
        policy,
        primary_table=get_primary_table(sql, op),
    )


__all__ = [
    "InvalidationSet",
    "FlushPolicy",
    "select_flush_targets",
    "build_invalidation_set",
]
