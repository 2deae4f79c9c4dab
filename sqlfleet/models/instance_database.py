"""SQLFleet - 实例数据库模型
用于记录实例下的用户数据库及其文件、备份概况.
"""

from sqlfleet import db
from sqlfleet.utils.time_utils import time_utils


class SqlDatabase(db.Model):
    """实例数据库模型.

    首次发现时创建,后续采集原地更新;采集引擎从不删除该记录.

    Attributes:
        id: 主键 ID.
        instance_id: 关联的实例 ID.
        name: 数据库名称.
        status: 数据库状态(state_desc).
        recovery_model: 恢复模式.
        size_mb: 全部文件合计大小(MB).
        data_file_path: 首个数据文件路径.
        data_file_size_mb: 数据文件合计大小(MB).
        log_file_path: 首个日志文件路径.
        log_file_size_mb: 日志文件合计大小(MB).
        last_full_backup: 最近一次完整备份完成时间.
        last_diff_backup: 最近一次差异备份完成时间.
        last_log_backup: 最近一次日志备份完成时间.
        description: 备注.
        created_at: 创建时间.
        updated_at: 更新时间.

    """

    __tablename__ = "sql_databases"

    id = db.Column(db.Integer, primary_key=True)
    instance_id = db.Column(
        db.Integer,
        db.ForeignKey("sql_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False, comment="数据库名称")
    status = db.Column(db.String(60), nullable=True)
    recovery_model = db.Column(db.String(60), nullable=True)
    size_mb = db.Column(db.Numeric(18, 2), nullable=True)
    data_file_path = db.Column(db.Text, nullable=True)
    data_file_size_mb = db.Column(db.Numeric(18, 2), nullable=True)
    log_file_path = db.Column(db.Text, nullable=True)
    log_file_size_mb = db.Column(db.Numeric(18, 2), nullable=True)
    last_full_backup = db.Column(db.DateTime, nullable=True)
    last_diff_backup = db.Column(db.DateTime, nullable=True)
    last_log_backup = db.Column(db.DateTime, nullable=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, onupdate=time_utils.now, nullable=False)

    instance = db.relationship("SqlInstance", back_populates="databases")
    backup_history = db.relationship(
        "BackupHistory",
        back_populates="database",
        cascade="all, delete-orphan",
        order_by="BackupHistory.backup_finish_date.desc()",
    )
    tables = db.relationship("DbTable", back_populates="database", cascade="all, delete-orphan")
    indexes = db.relationship("DbIndex", back_populates="database", cascade="all, delete-orphan")
    stored_procedures = db.relationship("DbStoredProcedure", back_populates="database", cascade="all, delete-orphan")
    users = db.relationship("DbUser", back_populates="database", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("instance_id", "name", name="uq_sql_databases_instance_name"),
        db.Index("ix_sql_databases_name", "name"),
        {
            "comment": "实例数据库清单",
        },
    )

    def to_dict(self) -> dict:
        """转换为字典格式."""

        def _decimal(value: object) -> float | None:
            return float(value) if value is not None else None

        return {
            "id": self.id,
            "instance_id": self.instance_id,
            "name": self.name,
            "status": self.status,
            "recovery_model": self.recovery_model,
            "size_mb": _decimal(self.size_mb),
            "data_file_path": self.data_file_path,
            "data_file_size_mb": _decimal(self.data_file_size_mb),
            "log_file_path": self.log_file_path,
            "log_file_size_mb": _decimal(self.log_file_size_mb),
            "last_full_backup": self.last_full_backup.isoformat() if self.last_full_backup else None,
            "last_diff_backup": self.last_diff_backup.isoformat() if self.last_diff_backup else None,
            "last_log_backup": self.last_log_backup.isoformat() if self.last_log_backup else None,
            "description": self.description,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        """返回实例数据库的调试字符串.

        Returns:
            str: 包含实例 ID、数据库名及状态的文本.

        """
        return f"<SqlDatabase(id={self.id}, instance_id={self.instance_id}, name='{self.name}', status={self.status})>"
