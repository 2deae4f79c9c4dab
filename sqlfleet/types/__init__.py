"""类型定义模块."""

from .dbapi import DBAPIConnection, DBAPICursor
from .snapshots import (
    BackupHistoryEntry,
    DatabaseInfo,
    DatabaseSnapshot,
    IndexInfo,
    InstanceRefreshResult,
    InstanceSnapshot,
    LoginInfo,
    ProbeResult,
    ProcedureInfo,
    TableInfo,
    UserInfo,
)

__all__ = [
    "BackupHistoryEntry",
    "DBAPIConnection",
    "DBAPICursor",
    "DatabaseInfo",
    "DatabaseSnapshot",
    "IndexInfo",
    "InstanceRefreshResult",
    "InstanceSnapshot",
    "LoginInfo",
    "ProbeResult",
    "ProcedureInfo",
    "TableInfo",
    "UserInfo",
]
