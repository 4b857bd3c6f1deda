"""缓存自动失效模块

监听数据库写语句，按 JOIN 关系和失效策略清除相关的响应缓存。

缓存键中的资源名总是被冒号包围（如 "shop_:a1:shop:orders:GET:7:-:-"），
失效目标 "orders" 会清除所有包含 ":orders:" 的键，无论它出现在键的哪个位置。

使用示例:
    from sqlalchemy import create_engine
    from ycache import ResponseCacheService, WriteQueryListener

    engine = create_engine("sqlite:///app.db")
    service = ResponseCacheService(store, settings)

    listener = WriteQueryListener(service, settings).attach(engine)

    # 之后所有 INSERT / UPDATE / DELETE 都会自动失效相关缓存
    with engine.begin() as conn:
        conn.execute(text("UPDATE orders SET status = 'paid' WHERE id = 1"))

    # 批量导入时临时禁用
    with listener.no_auto_invalidation():
        bulk_import(rows)
"""

import threading
from typing import Iterable, Optional, Sequence

from sqlalchemy import event

from .exceptions import CacheResult
from .log import get_logger
from .sql import (
    FlushPolicy,
    InvalidationSet,
    build_invalidation_set,
    classify,
    get_affected_tables,
    get_primary_table,
)
from .store import CacheStore

logger = get_logger()

_GLOB_ESCAPES = {"*": "[*]", "?": "[?]", "[": "[[]"}


def target_pattern(target: str) -> str:
    """失效目标 -> SCAN 使用的 glob 模式

    目标被冒号包围、可以出现在键的任意位置；目标中的 glob 元字符会被转义。

    使用示例:
        target_pattern("orders")        # "*:orders:*"
        target_pattern("orders.id")     # "*:orders.id:*"
    """
    escaped = "".join(_GLOB_ESCAPES.get(ch, ch) for ch in target)
    return f"*:{escaped}:*"


class InvalidationExecutor:
    """按失效集合执行 scan + delete

    每个目标单独做一次完整的 cursor 遍历，每批最多 scan_count 个键，
    遇到第一个存储错误立即放弃，不做重试。

    Args:
        store: 缓存存储
        scan_count: 每批 SCAN 的数量
    """

    def __init__(self, store: CacheStore, scan_count: int = 300):
        self._store = store
        self._scan_count = scan_count

    def purge_target(self, target: str) -> CacheResult[int]:
        """清除单个目标匹配的所有键，返回删除数量"""
        match = target_pattern(target)
        deleted = 0
        cursor = 0
        while True:
            result = self._store.scan(cursor, match, self._scan_count)
            if not result.ok:
                return result
            cursor, keys = result.value

            if keys:
                removed = self._store.delete(*keys)
                if not removed.ok:
                    return removed
                deleted += removed.value

            if cursor == 0:
                break

        logger.debug(f"Purged {deleted} keys for target '{target}'")
        return CacheResult.success(deleted)

    def purge(self, targets: Iterable[str]) -> CacheResult[int]:
        """清除失效集合中所有目标匹配的键

        Returns:
            成功时 value 为删除的键总数；任一目标失败时返回该失败结果
        """
        total = 0
        for target in sorted(set(targets)):
            if not target:
                continue
            result = self.purge_target(target)
            if not result.ok:
                return result
            total += result.value
        return CacheResult.success(total)


class WriteQueryListener:
    """数据库写语句监听器

    挂在 SQLAlchemy Engine 的 after_cursor_execute 事件上，
    在执行写语句的线程上同步完成失效。

    Args:
        service: ResponseCacheService，负责持有存储并执行失效
        policy: 失效策略，默认使用 service 配置中的 flush 段
        skip_tables: 写入这些表时不触发失效（如 sessions、jobs）
        relation_patterns: 诊断日志中过滤技术表的规则
    """

    def __init__(
        self,
        service,
        policy: Optional[FlushPolicy] = None,
        skip_tables: Optional[Iterable[str]] = None,
        relation_patterns: Optional[Sequence[str]] = None,
    ):
        settings = service.settings
        self._service = service
        self._policy = policy or settings.to_flush_policy()
        if skip_tables is None:
            skip_tables = settings.options.skip_tables
        self._skip_tables = frozenset(t.lower() for t in skip_tables)
        if relation_patterns is None:
            relation_patterns = settings.options.technical_table_patterns
        self._relation_patterns = relation_patterns

        self._engines = []
        self._lock = threading.RLock()
        self._enabled = True

    @property
    def policy(self) -> FlushPolicy:
        return self._policy

    def attach(self, engine) -> "WriteQueryListener":
        """在 engine 上注册监听，重复注册同一个 engine 会被忽略"""
        with self._lock:
            if engine in self._engines:
                return self
            event.listen(engine, "after_cursor_execute", self._after_cursor_execute)
            self._engines.append(engine)
            logger.debug(f"Write query listener attached: {engine!r}")
        return self

    def detach(self, engine=None):
        """取消监听，不传 engine 时取消所有"""
        with self._lock:
            engines = [engine] if engine is not None else list(self._engines)
            for eng in engines:
                if eng not in self._engines:
                    continue
                event.remove(eng, "after_cursor_execute", self._after_cursor_execute)
                self._engines.remove(eng)
                logger.debug(f"Write query listener detached: {eng!r}")

    def disable(self):
        """临时禁用自动失效"""
        self._enabled = False
        logger.debug("Cache auto-invalidation disabled")

    def enable(self):
        """启用自动失效"""
        self._enabled = True
        logger.debug("Cache auto-invalidation enabled")

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def is_attached(self) -> bool:
        return bool(self._engines)

    def no_auto_invalidation(self) -> "InvalidationContext":
        """创建禁用自动失效的上下文"""
        return InvalidationContext(self)

    def invalidation_set_for(self, sql: str) -> InvalidationSet:
        """计算一条语句需要失效的目标

        非写语句、写入 skip_tables 中的表时返回空集合。
        """
        op = classify(sql)
        if not op.is_write:
            return frozenset()

        primary = get_primary_table(sql, op)
        if primary and primary in self._skip_tables:
            return frozenset()

        targets = build_invalidation_set(sql, self._policy)
        if primary and "-" in primary:
            # 表名中的 "-" 在缓存键中统一写作 "_"
            targets = (targets - {primary}) | {primary.replace("-", "_")}
        return targets

    def handle_statement(self, sql: str) -> int:
        """处理一条已执行的语句，返回清除的键数量"""
        if not self._enabled:
            return 0

        targets = self.invalidation_set_for(sql)
        if not targets:
            return 0

        logger.debug(
            f"Write statement detected, targets={sorted(targets)}, "
            f"relations={get_affected_tables(sql, self._relation_patterns)}"
        )
        return self._service.flush(targets)

    def _after_cursor_execute(self, conn, cursor, statement, parameters, context, executemany):
        try:
            self.handle_statement(statement)
        except Exception as e:
            # 缓存失效失败不能影响数据库写入
            logger.debug(f"Auto-invalidation failed: {type(e).__name__}: {e}")


class InvalidationContext:
    """缓存失效控制上下文

    用于临时禁用自动失效，例如批量导入时。

    使用示例:
        with listener.no_auto_invalidation():
            for row in rows:
                session.add(Order(**row))
            session.commit()

        # 导入完成后手动失效
        service.flush({"orders"})
    """

    def __init__(self, listener: WriteQueryListener):
        self._listener = listener
        self._was_enabled = True

    def __enter__(self):
        self._was_enabled = self._listener.is_enabled
        self._listener.disable()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._was_enabled:
            self._listener.enable()
        return False


__all__ = [
    "target_pattern",
    "InvalidationExecutor",
    "WriteQueryListener",
    "InvalidationContext",
]
