"""SQLFleet - 系统常量定义模块.

统一管理错误分类、严重级别与错误消息,避免魔法字符串.
"""

from enum import Enum


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    BUSINESS = "business"
    DATABASE = "database"
    SYSTEM = "system"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"
    RESOURCE_NOT_FOUND = "资源不存在"
    CONSTRAINT_VIOLATION = "数据约束错误"

    # 数据库错误
    DATABASE_QUERY_ERROR = "数据库查询错误"

    # 业务错误
    INSTANCE_NOT_FOUND = "数据库实例不存在"
    DATABASE_NOT_FOUND = "数据库记录不存在"
    INSTANCE_NAME_EXISTS = "实例名称已存在"
