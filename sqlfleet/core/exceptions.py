"""SQLFleet - 统一异常定义.

说明:
- 本模块只负责定义异常类型与语义字段,不包含 HTTP/Flask 等框架细节.
- 远端不可达、部分采集失败属于"远端事实",以快照数据表达,不使用异常.
- 本地存储写入失败、配置错误属于缺陷或环境问题,通过本模块异常向调用方传播.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlfleet.constants.system_constants import ErrorCategory, ErrorMessages, ErrorSeverity


@dataclass(frozen=True, slots=True)
class ExceptionMetadata:
    """异常的元信息."""

    category: ErrorCategory
    severity: ErrorSeverity
    default_message_key: str


class AppError(Exception):
    """统一的基础业务异常.

    Args:
        message: 自定义错误文案,若为空则根据 ``message_key`` 推导.
        message_key: 自定义消息键.
        extra: 结构化日志附加字段.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        message_key: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.message_key = message_key or self.metadata.default_message_key
        self.message = message or getattr(ErrorMessages, self.message_key, ErrorMessages.INTERNAL_ERROR)
        self.extra = dict(extra or {})
        self.severity = self.metadata.severity
        self.category = self.metadata.category
        super().__init__(self.message)


class ValidationError(AppError):
    """表示输入参数验证失败."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="VALIDATION_ERROR",
    )


class NotFoundError(AppError):
    """表示请求的实例或数据库记录不存在."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.LOW,
        default_message_key="RESOURCE_NOT_FOUND",
    )


class ConflictError(AppError):
    """表示资源状态冲突或违反唯一性约束."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.MEDIUM,
        default_message_key="CONSTRAINT_VIOLATION",
    )


class DatabaseError(AppError):
    """表示本地清单存储的查询或事务执行失败."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.DATABASE,
        severity=ErrorSeverity.HIGH,
        default_message_key="DATABASE_QUERY_ERROR",
    )


__all__ = [
    "AppError",
    "ConflictError",
    "DatabaseError",
    "NotFoundError",
    "ValidationError",
]
