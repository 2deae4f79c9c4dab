"""SQLFleet - 备份历史模型."""

from sqlfleet import db
from sqlfleet.constants import BackupType
from sqlfleet.utils.time_utils import time_utils


class BackupHistory(db.Model):
    """数据库备份历史.

    每次实例采集成功取得某库的备份历史时,整体替换该库的记录.
    """

    __tablename__ = "backup_history"

    id = db.Column(db.Integer, primary_key=True)
    database_id = db.Column(
        db.Integer,
        db.ForeignKey("sql_databases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    backup_type = db.Column(db.String(20), nullable=False)
    backup_start_date = db.Column(db.DateTime, nullable=True)
    backup_finish_date = db.Column(db.DateTime, nullable=True)
    backup_size_mb = db.Column(db.Numeric(18, 2), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    database = db.relationship("SqlDatabase", back_populates="backup_history")

    __table_args__ = (
        db.CheckConstraint(
            "backup_type IN ({})".format(", ".join(f"'{value}'" for value in BackupType.ALL)),
            name="ck_backup_history_type",
        ),
        db.Index("ix_backup_history_finish", "database_id", "backup_finish_date"),
    )

    def __repr__(self) -> str:
        return f"<BackupHistory {self.database_id} {self.backup_type} {self.backup_finish_date}>"
