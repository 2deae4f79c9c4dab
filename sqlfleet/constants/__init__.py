"""常量模块.

主要常量:
- InstanceStatus: 实例可达性状态
- BackupType: 备份类型
- Environment: 实例环境标签
- DisabledType: 实例停用类型
- ErrorMessages: 错误消息常量
"""

from .status_types import BackupType, DisabledType, Environment, InstanceStatus
from .system_constants import ErrorCategory, ErrorMessages, ErrorSeverity

# 系统库不纳入清单
SYSTEM_DATABASES: tuple[str, ...] = ("master", "tempdb", "model", "msdb")

__all__ = [
    "SYSTEM_DATABASES",
    "BackupType",
    "DisabledType",
    "Environment",
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "InstanceStatus",
]
