"""清单采集快照类型.

约定: 集合字段为 ``None`` 表示本次未取得(入库时保持原值不动),
为 ``[]`` 表示远端确实为空(入库时清空).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlfleet.constants import InstanceStatus


@dataclass(slots=True)
class ProbeResult:
    """可达性探测结果."""

    status: str
    error: str | None = None

    @property
    def is_up(self) -> bool:
        return self.status == InstanceStatus.UP


@dataclass(slots=True)
class BackupHistoryEntry:
    """单条备份记录."""

    backup_type: str
    backup_start_date: datetime | None
    backup_finish_date: datetime | None
    backup_size_mb: Decimal | None


@dataclass(slots=True)
class DatabaseInfo:
    """实例采集得到的单个用户数据库.

    ``backups_collected`` 为 False 表示该库的备份查询失败,
    最近备份时间与备份历史都不可信.
    """

    name: str
    status: str | None = None
    recovery_model: str | None = None
    size_mb: Decimal | None = None
    data_file_path: str | None = None
    data_file_size_mb: Decimal | None = None
    log_file_path: str | None = None
    log_file_size_mb: Decimal | None = None
    last_full_backup: datetime | None = None
    last_diff_backup: datetime | None = None
    last_log_backup: datetime | None = None
    backup_history: list[BackupHistoryEntry] = field(default_factory=list)
    backups_collected: bool = False


@dataclass(slots=True)
class LoginInfo:
    """实例级登录名."""

    login_name: str
    login_type: str | None = None
    default_database: str | None = None
    is_disabled: bool = False
    created_date: datetime | None = None


@dataclass(slots=True)
class InstanceSnapshot:
    """单次实例采集的结果.

    连接失败时 ``status`` 为 DOWN,``error`` 为驱动原始错误信息,其余字段保持默认值.
    """

    status: str
    error: str | None = None
    version: str | None = None
    edition: str | None = None
    last_restart_time: datetime | None = None
    cpu_cores: int | None = None
    total_memory_gb: Decimal | None = None
    databases: list[DatabaseInfo] = field(default_factory=list)
    logins: list[LoginInfo] = field(default_factory=list)

    @property
    def is_up(self) -> bool:
        return self.status == InstanceStatus.UP


@dataclass(slots=True)
class TableInfo:
    schema_name: str | None
    table_name: str
    row_count: int | None = None
    created_date: datetime | None = None


@dataclass(slots=True)
class IndexInfo:
    table_name: str | None
    index_name: str
    index_type: str | None = None
    is_unique: bool = False


@dataclass(slots=True)
class ProcedureInfo:
    schema_name: str | None
    procedure_name: str
    created_date: datetime | None = None


@dataclass(slots=True)
class UserInfo:
    user_name: str
    user_type: str | None = None
    default_schema: str | None = None
    roles: str | None = None


@dataclass(slots=True)
class DatabaseSnapshot:
    """单次数据库采集的结果.

    任一查询失败时对应集合为 ``None``,错误信息追加到 ``error``.
    """

    tables: list[TableInfo] | None = None
    indexes: list[IndexInfo] | None = None
    stored_procedures: list[ProcedureInfo] | None = None
    users: list[UserInfo] | None = None
    error: str | None = None

    def add_error(self, message: str) -> None:
        """追加一条错误信息."""
        self.error = f"{self.error}; {message}" if self.error else message


@dataclass(slots=True)
class InstanceRefreshResult:
    """一次实例刷新(采集 + 入库)的汇总."""

    instance_id: int
    status: str
    error: str | None = None
    database_count: int = 0
    refreshed_databases: list[str] = field(default_factory=list)
    database_errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_up(self) -> bool:
        return self.status == InstanceStatus.UP
