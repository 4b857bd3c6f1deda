"""写语句分类

只看语句开头的关键字判断是否为写操作，并用正则提取写操作直接作用的主表。
这是有意保持浅层的启发式实现，不校验完整的 SQL 语法。

使用示例:
    from ycache.sql import classify, get_primary_table, WriteOp

    op = classify("UPDATE orders SET status = 1 WHERE id = 3")   # WriteOp.UPDATE
    get_primary_table("UPDATE orders SET status = 1")            # "orders"
    get_primary_table("DELETE orders WHERE id = 1")              # None（缺少 FROM）
"""

import re
from enum import Enum
from typing import Optional


class WriteOp(str, Enum):
    """写操作类型"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    NONE = "NONE"

    @property
    def is_write(self) -> bool:
        return self is not WriteOp.NONE


# 标识符：允许被反引号、双引号、方括号包裹，允许 schema.table 形式
_IDENT = r"[`\"\[\]\w.$-]+"
_QUOTE_CHARS = "`\"[]"

_PRIMARY_TABLE_PATTERNS = {
    WriteOp.INSERT: re.compile(
        r"^insert\s+into\s+(?P<table>" + _IDENT + r")(?=[\s(;]|$)",
        re.IGNORECASE,
    ),
    # 多表 UPDATE（"UPDATE a, b SET" / "UPDATE a JOIN b ... SET"）不匹配
    WriteOp.UPDATE: re.compile(
        r"^update\s+(?P<table>" + _IDENT + r")(?:\s+(?:as\s+)?(?!set\b)\w+)?\s+set\b",
        re.IGNORECASE,
    ),
    WriteOp.DELETE: re.compile(
        r"^delete\s+from\s+(?P<table>" + _IDENT + r")(?=[\s;]|$)",
        re.IGNORECASE,
    ),
}


def strip_identifier(token: str) -> str:
    """去掉标识符中的引号、反引号和方括号"""
    for ch in _QUOTE_CHARS:
        token = token.replace(ch, "")
    return token.strip()


def classify(sql: str) -> WriteOp:
    """判断 SQL 语句的写操作类型

    只比较去掉前导空白后位于开头的关键字（不区分大小写）。
    SELECT、存储过程调用、DDL 等一律返回 WriteOp.NONE。
    """
    if not sql:
        return WriteOp.NONE

    head = sql.lstrip()[:6].upper()
    for op in (WriteOp.INSERT, WriteOp.UPDATE, WriteOp.DELETE):
        if head.startswith(op.value):
            return op
    return WriteOp.NONE


def get_primary_table(sql: str, op: Optional[WriteOp] = None) -> Optional[str]:
    """提取写操作直接作用的主表

    - INSERT: INSERT INTO <table>
    - UPDATE: UPDATE <table> [alias] SET
    - DELETE: DELETE FROM <table>

    Args:
        sql: SQL 语句
        op: 已知的写操作类型，不传则调用 classify 判断

    Returns:
        小写的表名；带 schema 前缀时只返回最后一段。
        语句形状不符合预期（多表 UPDATE、没有 FROM 的 DELETE 等）时返回 None。
    """
    if op is None:
        op = classify(sql)

    pattern = _PRIMARY_TABLE_PATTERNS.get(op)
    if pattern is None:
        return None

    match = pattern.match(sql.lstrip())
    if not match:
        return None

    table = strip_identifier(match.group("table")).split(".")[-1]
    return table.lower() or None


__all__ = [
    "WriteOp",
    "classify",
    "get_primary_table",
    "strip_identifier",
]
