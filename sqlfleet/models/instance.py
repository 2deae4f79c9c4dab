"""SQLFleet - 实例模型."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlfleet import db
from sqlfleet.constants import DisabledType, Environment, InstanceStatus
from sqlfleet.settings import DEFAULT_MSSQL_PORT
from sqlfleet.utils.time_utils import time_utils


@dataclass(slots=True)
class InstanceCreateParams:
    """实例初始化参数."""

    name: str
    host: str
    environment: str = Environment.OTHER
    port: int = DEFAULT_MSSQL_PORT
    is_always_on: bool = False
    ag_name: str | None = None
    auth_username: str | None = None
    auth_password_encrypted: str | None = None
    description: str | None = None
    is_active: bool = True


def _in_clause(values: tuple[str, ...]) -> str:
    return ", ".join(f"'{value}'" for value in values)


class SqlInstance(db.Model):
    """SQL Server 实例模型.

    存储远端实例的连接端点、加密后的登录凭据,以及最近一次采集得到的
    可达性状态与版本、硬件信息.

    Attributes:
        id: 实例主键.
        name: 实例名称,唯一.
        environment: 所属环境(Production/Dev/QA/UAT/Other).
        is_always_on: 是否属于 Always On 可用性组.
        ag_name: 可用性组名称,仅 ``is_always_on`` 为真时有值.
        host: 主机地址.
        port: 端口号,默认 1433.
        auth_username: SQL 登录名.
        auth_password_encrypted: 加密后的登录密码(``iv:ciphertext``).
        description: 描述信息.
        is_active: 是否纳入采集.
        disabled_reason: 停用原因.
        disabled_type: 停用类型(permanent/temporary).
        disabled_at: 停用时间.
        last_status: 最近一次采集的可达性(UP/DOWN/UNKNOWN).
        last_error: 最近一次不可达时的错误信息,仅 DOWN 时有值.
        version: 产品版本,形如 ``16.0.1000.6 (RTM)``.
        edition: 产品版本名称.
        cpu_cores: 逻辑 CPU 数量.
        total_memory_gb: 物理内存(GB).
        last_restart_time: SQL Server 服务最近一次启动时间.
        last_checked_at: 最近一次采集时间.
        created_at: 创建时间.
        updated_at: 更新时间.

    """

    __tablename__ = "sql_instances"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True, index=True)
    environment = db.Column(db.String(20), nullable=False, default=Environment.OTHER)
    is_always_on = db.Column(db.Boolean, default=False, nullable=False)
    ag_name = db.Column(db.String(255), nullable=True)
    host = db.Column(db.String(255), nullable=False)
    port = db.Column(db.Integer, nullable=False, default=DEFAULT_MSSQL_PORT)
    auth_username = db.Column(db.String(255), nullable=True)
    auth_password_encrypted = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    disabled_reason = db.Column(db.Text, nullable=True)
    disabled_type = db.Column(db.String(20), nullable=True)
    disabled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_status = db.Column(db.String(10), nullable=False, default=InstanceStatus.UNKNOWN)
    last_error = db.Column(db.Text, nullable=True)
    version = db.Column(db.String(255), nullable=True)
    edition = db.Column(db.String(255), nullable=True)
    cpu_cores = db.Column(db.Integer, nullable=True)
    total_memory_gb = db.Column(db.Numeric(18, 2), nullable=True)
    last_restart_time = db.Column(db.DateTime, nullable=True)
    last_checked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=time_utils.now)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, onupdate=time_utils.now)

    databases = db.relationship(
        "SqlDatabase",
        back_populates="instance",
        cascade="all, delete-orphan",
        order_by="SqlDatabase.name",
    )
    logins = db.relationship(
        "SqlInstanceLogin",
        back_populates="instance",
        cascade="all, delete-orphan",
        order_by="SqlInstanceLogin.login_name",
    )

    __table_args__ = (
        db.CheckConstraint(
            f"environment IN ({_in_clause(Environment.ALL)})",
            name="ck_sql_instances_environment",
        ),
        db.CheckConstraint(
            f"last_status IN ({_in_clause(InstanceStatus.ALL)})",
            name="ck_sql_instances_last_status",
        ),
        db.CheckConstraint(
            f"disabled_type IS NULL OR disabled_type IN ({_in_clause(DisabledType.ALL)})",
            name="ck_sql_instances_disabled_type",
        ),
        db.Index("ix_sql_instances_last_status", "last_status"),
        db.Index("ix_sql_instances_ag_name", "ag_name"),
    )

    def __init__(self, params: InstanceCreateParams | None = None, **orm_fields: Any) -> None:
        """初始化实例数据.

        Args:
            params: 结构化的实例参数对象,用于创建流程.
            **orm_fields: ORM 加载或测试场景注入的原始字段.

        """
        super().__init__(**orm_fields)
        if params is None:
            return
        self.name = params.name
        self.environment = params.environment
        self.host = params.host
        self.port = params.port
        self.is_always_on = params.is_always_on
        self.ag_name = params.ag_name
        self.auth_username = params.auth_username
        self.auth_password_encrypted = params.auth_password_encrypted
        self.description = params.description
        self.is_active = params.is_active

    def to_dict(self) -> dict[str, Any]:
        """转换为字典格式.

        加密凭据永远不会出现在返回值中.

        Returns:
            包含实例基础信息与最近采集状态的字典.

        """
        return {
            "id": self.id,
            "name": self.name,
            "environment": self.environment,
            "is_always_on": self.is_always_on,
            "ag_name": self.ag_name,
            "host": self.host,
            "port": self.port,
            "auth_username": self.auth_username,
            "description": self.description,
            "is_active": self.is_active,
            "disabled_reason": self.disabled_reason,
            "disabled_type": self.disabled_type,
            "disabled_at": self.disabled_at.isoformat() if self.disabled_at else None,
            "last_status": self.last_status,
            "last_error": self.last_error,
            "version": self.version,
            "edition": self.edition,
            "cpu_cores": self.cpu_cores,
            "total_memory_gb": float(self.total_memory_gb) if self.total_memory_gb is not None else None,
            "last_restart_time": self.last_restart_time.isoformat() if self.last_restart_time else None,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        """返回实例的调试字符串.

        Returns:
            str: 展示实例名称与状态的文本表示.

        """
        return f"<SqlInstance {self.name} status={self.last_status}>"
