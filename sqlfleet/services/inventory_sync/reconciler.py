"""清单快照入库.

把 InstanceSnapshot / DatabaseSnapshot 写入本地清单.每次调用是一个事务:
成功则提交,失败则回滚并抛出 DatabaseError,读方不会看到"已清空未回填"的中间状态.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from sqlfleet import db
from sqlfleet.constants import InstanceStatus
from sqlfleet.core.exceptions import DatabaseError, NotFoundError
from sqlfleet.models.backup_history import BackupHistory
from sqlfleet.models.database_objects import DbIndex, DbStoredProcedure, DbTable, DbUser
from sqlfleet.models.instance import SqlInstance
from sqlfleet.models.instance_database import SqlDatabase
from sqlfleet.models.instance_login import SqlInstanceLogin
from sqlfleet.utils.structlog_config import get_sync_logger
from sqlfleet.utils.time_utils import time_utils

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, scoped_session

    from sqlfleet.types import DatabaseInfo, DatabaseSnapshot, InstanceSnapshot

# UP 时按本次采集结果整体覆盖,DOWN 时保持不变
_INSTANCE_OBSERVED_FIELDS: tuple[str, ...] = (
    "version",
    "edition",
    "last_restart_time",
    "cpu_cores",
    "total_memory_gb",
)

_DATABASE_HARVESTED_FIELDS: tuple[str, ...] = (
    "status",
    "recovery_model",
    "size_mb",
    "data_file_path",
    "data_file_size_mb",
    "log_file_path",
    "log_file_size_mb",
    "last_full_backup",
    "last_diff_backup",
    "last_log_backup",
)


class InventoryReconciler:
    """负责把采集快照写入本地清单.

    Attributes:
        session: 注入的 SQLAlchemy 会话,缺省为 ``db.session``.

    Example:
        >>> reconciler = InventoryReconciler()
        >>> reconciler.save_instance(instance.id, snapshot)

    """

    def __init__(self, session: Session | scoped_session | None = None) -> None:
        self.session = session if session is not None else db.session
        self.logger = get_sync_logger()

    def save_instance(self, instance_id: int, snapshot: InstanceSnapshot, *, now: datetime | None = None) -> None:
        """写入实例快照.

        状态与检查时间每次都会更新;DOWN 时只记录错误,不触碰版本等字段;
        UP 时版本、硬件与各库最近备份时间按本次结果覆盖,取不到的写为空.
        数据库按 (instance_id, name) 新增或原地更新,从不删除.
        备份历史仅在快照携带非空历史时整体替换,登录名仅在列表非空时整体替换.

        Args:
            instance_id: 实例 ID.
            snapshot: 实例采集快照.
            now: 写入时间,缺省为当前 UTC 时间;相同快照与相同 ``now`` 得到相同的行.

        Raises:
            NotFoundError: 实例不存在.
            DatabaseError: 本地存储写入失败.

        """
        now_ts = now or time_utils.now()
        instance = self.session.get(SqlInstance, instance_id)
        if instance is None:
            raise NotFoundError(message_key="INSTANCE_NOT_FOUND", extra={"instance_id": instance_id})

        created = 0
        try:
            self._apply_instance_fields(instance, snapshot, now_ts)

            existing_map = {
                record.name: record
                for record in self.session.scalars(
                    select(SqlDatabase).where(SqlDatabase.instance_id == instance_id),
                )
            }
            for database in snapshot.databases:
                record = existing_map.get(database.name)
                if record is None:
                    record = SqlDatabase(instance_id=instance_id, name=database.name, created_at=now_ts)
                    self.session.add(record)
                    existing_map[database.name] = record
                    created += 1
                self._apply_database_fields(record, database, now_ts)

            if snapshot.logins:
                instance.logins = [
                    SqlInstanceLogin(
                        login_name=login.login_name,
                        login_type=login.login_type,
                        default_database=login.default_database,
                        is_disabled=login.is_disabled,
                        created_date=login.created_date,
                        updated_at=now_ts,
                    )
                    for login in snapshot.logins
                ]

            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            self.logger.exception(
                "reconcile_instance_failed",
                module="inventory_sync",
                instance_id=instance_id,
                error=str(exc),
            )
            raise DatabaseError(
                f"实例清单写入失败: {exc}",
                extra={"instance_id": instance_id},
            ) from exc

        self.logger.info(
            "reconcile_instance_completed",
            module="inventory_sync",
            instance_id=instance_id,
            status=snapshot.status,
            database_count=len(snapshot.databases),
            created_databases=created,
            login_count=len(snapshot.logins),
            backup_failed_databases=[
                database.name for database in snapshot.databases if not database.backups_collected
            ],
        )

    def save_status(
        self,
        instance_id: int,
        status: str,
        error: str | None = None,
        *,
        now: datetime | None = None,
    ) -> None:
        """只写入可达性状态、错误与检查时间,版本与硬件字段保持不变.

        Raises:
            NotFoundError: 实例不存在.
            DatabaseError: 本地存储写入失败.

        """
        now_ts = now or time_utils.now()
        instance = self.session.get(SqlInstance, instance_id)
        if instance is None:
            raise NotFoundError(message_key="INSTANCE_NOT_FOUND", extra={"instance_id": instance_id})

        try:
            instance.last_status = status
            instance.last_error = error if status == InstanceStatus.DOWN else None
            instance.last_checked_at = now_ts
            instance.updated_at = now_ts
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            self.logger.exception(
                "reconcile_status_failed",
                module="inventory_sync",
                instance_id=instance_id,
                error=str(exc),
            )
            raise DatabaseError(
                f"实例状态写入失败: {exc}",
                extra={"instance_id": instance_id},
            ) from exc

        self.logger.info("reconcile_status_completed", module="inventory_sync", instance_id=instance_id, status=status)

    def save_database(self, database_id: int, snapshot: DatabaseSnapshot, *, now: datetime | None = None) -> None:
        """写入数据库结构快照.

        为 ``None`` 的集合保持原样;非 ``None`` 的集合先清空再整体写入,``[]`` 即清空.

        Args:
            database_id: 数据库记录 ID.
            snapshot: 数据库采集快照.
            now: 写入时间,缺省为当前 UTC 时间.

        Raises:
            NotFoundError: 数据库记录不存在.
            DatabaseError: 本地存储写入失败.

        """
        now_ts = now or time_utils.now()
        record = self.session.get(SqlDatabase, database_id)
        if record is None:
            raise NotFoundError(message_key="DATABASE_NOT_FOUND", extra={"database_id": database_id})

        replaced: list[str] = []
        try:
            if snapshot.tables is not None:
                record.tables = [
                    DbTable(
                        schema_name=table.schema_name,
                        table_name=table.table_name,
                        row_count=table.row_count,
                        created_date=table.created_date,
                        updated_at=now_ts,
                    )
                    for table in snapshot.tables
                ]
                replaced.append("tables")
            if snapshot.indexes is not None:
                record.indexes = [
                    DbIndex(
                        table_name=index.table_name,
                        index_name=index.index_name,
                        index_type=index.index_type,
                        is_unique=index.is_unique,
                        updated_at=now_ts,
                    )
                    for index in snapshot.indexes
                ]
                replaced.append("indexes")
            if snapshot.stored_procedures is not None:
                record.stored_procedures = [
                    DbStoredProcedure(
                        schema_name=procedure.schema_name,
                        procedure_name=procedure.procedure_name,
                        created_date=procedure.created_date,
                        updated_at=now_ts,
                    )
                    for procedure in snapshot.stored_procedures
                ]
                replaced.append("stored_procedures")
            if snapshot.users is not None:
                record.users = [
                    DbUser(
                        user_name=user.user_name,
                        user_type=user.user_type,
                        default_schema=user.default_schema,
                        roles=user.roles,
                        updated_at=now_ts,
                    )
                    for user in snapshot.users
                ]
                replaced.append("users")

            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            self.logger.exception(
                "reconcile_database_failed",
                module="inventory_sync",
                database_id=database_id,
                error=str(exc),
            )
            raise DatabaseError(
                f"数据库结构写入失败: {exc}",
                extra={"database_id": database_id},
            ) from exc

        self.logger.info(
            "reconcile_database_completed",
            module="inventory_sync",
            database_id=database_id,
            replaced=replaced,
            error=snapshot.error,
        )

    @staticmethod
    def _apply_instance_fields(instance: SqlInstance, snapshot: InstanceSnapshot, now_ts: datetime) -> None:
        instance.last_status = snapshot.status
        instance.last_checked_at = now_ts
        instance.updated_at = now_ts
        if not snapshot.is_up:
            instance.last_error = snapshot.error
            return

        instance.last_error = None
        for field_name in _INSTANCE_OBSERVED_FIELDS:
            setattr(instance, field_name, getattr(snapshot, field_name))

    @staticmethod
    def _apply_database_fields(record: SqlDatabase, database: DatabaseInfo, now_ts: datetime) -> None:
        for field_name in _DATABASE_HARVESTED_FIELDS:
            setattr(record, field_name, getattr(database, field_name))
        if database.backup_history:
            record.backup_history = [
                BackupHistory(
                    backup_type=entry.backup_type,
                    backup_start_date=entry.backup_start_date,
                    backup_finish_date=entry.backup_finish_date,
                    backup_size_mb=entry.backup_size_mb,
                    updated_at=now_ts,
                )
                for entry in database.backup_history
            ]
        record.updated_at = now_ts
