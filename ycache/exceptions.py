# -*- coding: utf-8 -*-
"""
缓存模块异常定义

异常层级:
    CacheError (基类)
    ├── CacheConfigError        - 配置错误
    ├── StoreUnavailableError   - 存储不可用（连接建立失败 / 已被标记为不可用）
    └── StoreOperationError     - 存储操作失败（get/set/scan/delete）

所有与存储交互的操作都返回 CacheResult，而不是把异常抛给调用方。
调用方根据 result.ok 决定记录日志并继续，缓存失败永远不会导致请求失败。

使用示例:
    result = store.get("key")
    if not result.ok:
        logger.debug(f"缓存读取失败: {result.error}")
    value = result.unwrap_or(None)
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar


T = TypeVar("T")


class CacheError(Exception):
    """缓存错误基类

    Attributes:
        message: 错误消息
        code: 错误码（默认为类名）
        details: 详细信息（可选）
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """转换为字典（用于API响应）"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class CacheConfigError(CacheError):
    """缓存配置错误"""
    pass


class StoreUnavailableError(CacheError):
    """存储不可用

    连接建立失败，或存储句柄已在之前的失败后被丢弃。
    """

    def __init__(self, message: str = "缓存存储不可用", details: Optional[dict] = None):
        super().__init__(message, code="STORE_UNAVAILABLE", details=details)


class StoreOperationError(CacheError):
    """存储操作失败"""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(
            message=f"{operation} 失败: {type(cause).__name__}: {cause}",
            code="STORE_OPERATION_FAILED",
            details={"operation": operation, "exception": type(cause).__name__},
        )
        self.operation = operation
        self.cause = cause


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """存储操作结果

    ok 为 True 时 value 有效，否则 error 描述失败原因。
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[CacheError] = None

    @classmethod
    def success(cls, value: Any = None) -> "CacheResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: CacheError) -> "CacheResult":
        return cls(ok=False, error=error)

    def unwrap_or(self, default: Any) -> Any:
        """成功时返回 value，失败时返回 default"""
        return self.value if self.ok else default


__all__ = [
    "CacheError",
    "CacheConfigError",
    "StoreUnavailableError",
    "StoreOperationError",
    "CacheResult",
]
