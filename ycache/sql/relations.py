"""关联表过滤

中间表 / 透视表几乎每次写入都会变化，如果也参与失效会导致大面积清缓存。
这里的过滤只作用于"JOIN 涉及的关联表"列表（用于日志和诊断），
不作用于失效目标列表，两者用途不同，不要合并。
"""

import re
from typing import Iterable, List, Optional, Sequence

from .classifier import classify, get_primary_table
from .joins import extract_joins


# 默认的技术表规则：后缀 _user、前缀 pivot / model_has、精确名 article_viewer / media
DEFAULT_TECHNICAL_TABLE_PATTERNS = (
    r"_user$",
    r"^pivot",
    r"^model_has",
    r"^article_viewer$",
    r"^media$",
)


def _compile(patterns: Sequence[str]):
    return re.compile("|".join(f"(?:{p})" for p in patterns)) if patterns else None


_DEFAULT_RE = _compile(DEFAULT_TECHNICAL_TABLE_PATTERNS)


def filter_technical_tables(
    relations: Iterable[str],
    patterns: Optional[Sequence[str]] = None,
) -> List[str]:
    """移除技术性的关联表（中间表、透视表等），保持原有顺序

    Args:
        relations: 关联表名列表
        patterns: 自定义过滤规则（正则），不传使用 DEFAULT_TECHNICAL_TABLE_PATTERNS
    """
    regex = _DEFAULT_RE if patterns is None else _compile(patterns)
    if regex is None:
        return list(relations)
    return [name for name in relations if not regex.search(name)]


def extract_relations(sql: str, patterns: Optional[Sequence[str]] = None) -> List[str]:
    """提取 JOIN 涉及的业务关联表

    取每条 JOIN 的右表（带 schema 时取最后一段），过滤技术表后去重。
    """
    relations = []
    right_tables = [join.right_table for join in extract_joins(sql)]
    for table in filter_technical_tables(right_tables, patterns):
        relation = table.split(".")[-1]
        if relation and relation not in relations:
            relations.append(relation)
    return relations


def get_affected_tables(sql: str, patterns: Optional[Sequence[str]] = None) -> List[str]:
    """写语句影响的表：业务关联表 + 主表（诊断用）

    非写语句返回空列表。
    """
    op = classify(sql)
    if not op.is_write:
        return []

    tables = extract_relations(sql, patterns)
    main_table = get_primary_table(sql, op)
    if main_table and main_table not in tables:
        tables.append(main_table)
    return tables


__all__ = [
    "DEFAULT_TECHNICAL_TABLE_PATTERNS",
    "filter_technical_tables",
    "extract_relations",
    "get_affected_tables",
]
