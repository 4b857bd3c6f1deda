"""JOIN 关系提取

对 SQL 文本做一次正则扫描，找出所有 ``<JOIN 关键字> <表> ON <左列> = <右列>`` 结构。
不做完整的 SQL 解析：子查询、无 ON 的别名 JOIN、计算列 JOIN 等都不会被识别，
失效策略和测试都以这个启发式规则的行为为准。

JOIN 中的表名和列名只去掉引号，保持原样：不转小写，也不去掉 schema 前缀
（与 get_primary_table 不同）。"JOIN public.Products" 得到的失效目标是
"public.Products"，不会匹配 ":products:"，需要在 SQL 中使用与缓存键一致的表名。
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from .classifier import WriteOp, classify, strip_identifier


class JoinType(str, Enum):
    """JOIN 类型（取关键字的第一个单词）"""
    JOIN = "JOIN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    INNER = "INNER"
    OUTER = "OUTER"


_TOKEN = r"[`\"\[\]\w.-]+"

_JOIN_PATTERN = re.compile(
    r"\b(?P<keyword>JOIN|LEFT\s+JOIN|RIGHT\s+JOIN|INNER\s+JOIN|OUTER\s+JOIN)"
    r"\s+(?P<table>" + _TOKEN + r")"
    r"\s+ON\s+(?P<left>" + _TOKEN + r")"
    r"\s*=\s*(?P<right>" + _TOKEN + r")",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class JoinDescriptor:
    """一条 JOIN 关系

    left_table 总是 on_left_column 第一个 "." 之前的部分，不单独指定。
    """
    operation: WriteOp
    join_type: JoinType
    right_table: str
    on_left_column: str
    on_right_column: str

    @property
    def left_table(self) -> str:
        return self.on_left_column.split(".", 1)[0]

    def to_dict(self) -> dict:
        return {
            "operation": self.operation.value,
            "type": self.join_type.value,
            "right_table": self.right_table,
            "left_table": self.left_table,
            "on_left": self.on_left_column,
            "on_right": self.on_right_column,
        }


def extract_joins(sql: str) -> List[JoinDescriptor]:
    """提取 SQL 中的 JOIN 关系

    结果按文本中出现的顺序排列，不去重（去重在选择失效目标时进行）。
    每条结果的 operation 都是整条语句的写操作类型。

    Args:
        sql: SQL 语句

    Returns:
        JoinDescriptor 列表，没有匹配时为空列表
    """
    if not sql:
        return []

    operation = classify(sql)
    joins = []
    for match in _JOIN_PATTERN.finditer(sql):
        keyword = match.group("keyword").split()[0].upper()
        joins.append(JoinDescriptor(
            operation=operation,
            join_type=JoinType(keyword),
            right_table=strip_identifier(match.group("table")),
            on_left_column=strip_identifier(match.group("left")),
            on_right_column=strip_identifier(match.group("right")),
        ))
    return joins


__all__ = [
    "JoinType",
    "JoinDescriptor",
    "extract_joins",
]
