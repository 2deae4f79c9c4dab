"""SQL Server 实例元数据采集."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from sqlfleet.constants import BackupType, InstanceStatus
from sqlfleet.services.connection_adapters.adapters import SQLSERVER_CONNECTION_EXCEPTIONS
from sqlfleet.services.connection_adapters.connection_factory import ConnectionFactory, default_connection_factory
from sqlfleet.services.connection_adapters.connection_profile import build_connection_profile
from sqlfleet.settings import get_settings
from sqlfleet.types import BackupHistoryEntry, DatabaseInfo, InstanceSnapshot, LoginInfo
from sqlfleet.types.converters import as_bool, as_decimal, as_int, as_optional_str, as_str
from sqlfleet.utils.structlog_config import get_sync_logger

from . import queries

if TYPE_CHECKING:
    from sqlfleet.models.instance import SqlInstance
    from sqlfleet.services.connection_adapters.adapters import DatabaseConnection
    from sqlfleet.services.connection_adapters.connection_profile import ConnectionProfile
    from sqlfleet.settings import Settings

# 连接已建立后单条查询可能出现的异常(含结果行解析)
HARVEST_QUERY_EXCEPTIONS: tuple[type[BaseException], ...] = (
    *SQLSERVER_CONNECTION_EXCEPTIONS,
    LookupError,
    ArithmeticError,
)


class InstanceHarvester:
    """实例级元数据采集器.

    连接失败时返回 DOWN 快照;连接成功后版本、系统信息、数据库列表、
    登录名各自独立容错,任一查询失败只会让对应字段为空.
    各库的备份查询按库名顺序执行,可通过 ``backup_concurrency`` 放宽并发.

    Attributes:
        connection_factory: 连接工厂.
        settings: 网络策略与采集参数.
        backup_concurrency: 备份查询并发上限,1 表示在采集连接上顺序执行.

    """

    def __init__(
        self,
        connection_factory: ConnectionFactory | None = None,
        settings: Settings | None = None,
        *,
        backup_concurrency: int | None = None,
    ) -> None:
        self.connection_factory = connection_factory or default_connection_factory
        self.settings = settings or get_settings()
        self.backup_concurrency = max(1, backup_concurrency or self.settings.harvest_backup_concurrency)
        self.history_days = self.settings.harvest_backup_history_days
        self.logger = get_sync_logger()

    def harvest(self, instance: SqlInstance) -> InstanceSnapshot:
        """采集实例快照,远端故障不会以异常形式抛出.

        Args:
            instance: 实例记录.

        Returns:
            InstanceSnapshot: 采集结果.

        """
        profile = build_connection_profile(instance, settings=self.settings)
        connection = self.connection_factory.create_connection(profile)
        with connection:
            if not connection.connect():
                self.logger.warning(
                    "instance_harvest_connect_failed",
                    module="inventory_sync",
                    instance=instance.name,
                    host=instance.host,
                    error=connection.last_error,
                )
                return InstanceSnapshot(status=InstanceStatus.DOWN, error=connection.last_error)

            snapshot = InstanceSnapshot(status=InstanceStatus.UP)
            self._collect_version(instance, connection, snapshot)
            self._collect_system_info(instance, connection, snapshot)
            self._collect_databases(instance, connection, snapshot)
            self._collect_backups(instance, connection, profile, snapshot.databases)
            self._collect_logins(instance, connection, snapshot)

        self.logger.info(
            "instance_harvest_completed",
            module="inventory_sync",
            instance=instance.name,
            version=snapshot.version,
            database_count=len(snapshot.databases),
            login_count=len(snapshot.logins),
        )
        return snapshot

    def _log_query_failure(self, instance: SqlInstance, step: str, exc: BaseException, **context: object) -> None:
        self.logger.warning(
            "instance_harvest_query_failed",
            module="inventory_sync",
            instance=instance.name,
            step=step,
            error=str(exc),
            error_type=type(exc).__name__,
            **context,
        )

    def _collect_version(self, instance: SqlInstance, connection: DatabaseConnection, snapshot: InstanceSnapshot) -> None:
        try:
            rows = connection.execute_query(queries.SERVER_PROPERTIES)
            if not rows:
                return
            product_version, edition, product_level = rows[0][0], rows[0][1], rows[0][2]
            if product_version is not None:
                snapshot.version = f"{product_version} ({product_level})" if product_level else str(product_version)
            snapshot.edition = as_optional_str(edition)
        except HARVEST_QUERY_EXCEPTIONS as exc:
            self._log_query_failure(instance, "version", exc)

    def _collect_system_info(
        self,
        instance: SqlInstance,
        connection: DatabaseConnection,
        snapshot: InstanceSnapshot,
    ) -> None:
        try:
            rows = connection.execute_query(queries.SYSTEM_INFO)
            if not rows:
                return
            start_time, cpu_count, memory_gb = rows[0][0], rows[0][1], rows[0][2]
            snapshot.last_restart_time = start_time
            snapshot.cpu_cores = as_int(cpu_count)
            snapshot.total_memory_gb = as_decimal(memory_gb)
        except HARVEST_QUERY_EXCEPTIONS as exc:
            self._log_query_failure(instance, "system_info", exc)

    def _collect_databases(
        self,
        instance: SqlInstance,
        connection: DatabaseConnection,
        snapshot: InstanceSnapshot,
    ) -> None:
        try:
            rows = connection.execute_query(queries.USER_DATABASES)
            snapshot.databases = [
                DatabaseInfo(
                    name=as_str(row[0]),
                    status=as_optional_str(row[1]),
                    recovery_model=as_optional_str(row[2]),
                    size_mb=as_decimal(row[3]),
                    data_file_path=as_optional_str(row[4]),
                    data_file_size_mb=as_decimal(row[5]),
                    log_file_path=as_optional_str(row[6]),
                    log_file_size_mb=as_decimal(row[7]),
                )
                for row in rows
                if row and row[0] is not None
            ]
        except HARVEST_QUERY_EXCEPTIONS as exc:
            snapshot.databases = []
            self._log_query_failure(instance, "databases", exc)

    def _collect_backups(
        self,
        instance: SqlInstance,
        connection: DatabaseConnection,
        profile: ConnectionProfile,
        databases: list[DatabaseInfo],
    ) -> None:
        if not databases:
            return
        if self.backup_concurrency <= 1 or len(databases) == 1:
            for database in databases:
                self._collect_backups_for(instance, connection, database)
            return

        workers = min(self.backup_concurrency, len(databases))
        # 按序号轮转分配,每个 worker 独占一条连接
        buckets = [databases[index::workers] for index in range(workers)]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="backup-harvest") as executor:
            futures = [
                executor.submit(self._collect_backups_bucket, instance, profile, bucket) for bucket in buckets
            ]
            for future in futures:
                future.result()

    def _collect_backups_bucket(
        self,
        instance: SqlInstance,
        profile: ConnectionProfile,
        bucket: list[DatabaseInfo],
    ) -> None:
        connection = self.connection_factory.create_connection(profile)
        with connection:
            if not connection.connect():
                self.logger.warning(
                    "instance_harvest_backup_worker_connect_failed",
                    module="inventory_sync",
                    instance=instance.name,
                    databases=[database.name for database in bucket],
                    error=connection.last_error,
                )
                return
            for database in bucket:
                self._collect_backups_for(instance, connection, database)

    def _collect_backups_for(
        self,
        instance: SqlInstance,
        connection: DatabaseConnection,
        database: DatabaseInfo,
    ) -> None:
        """采集单库的最近备份时间与备份历史,失败时该库历史为空."""
        try:
            last_rows = connection.execute_query(queries.LAST_BACKUPS, (database.name,))
            history_rows = connection.execute_query(queries.BACKUP_HISTORY, (database.name, self.history_days))
            last_backups: dict[str, object] = {}
            for row in last_rows:
                last_backups[as_str(row[0]).strip()] = row[1]
            history = [
                BackupHistoryEntry(
                    backup_type=BackupType.from_code(as_str(row[0]).strip()) or as_str(row[0]),
                    backup_start_date=row[1],
                    backup_finish_date=row[2],
                    backup_size_mb=as_decimal(row[3]),
                )
                for row in history_rows
            ]
        except HARVEST_QUERY_EXCEPTIONS as exc:
            database.backup_history = []
            database.backups_collected = False
            self._log_query_failure(instance, "backups", exc, database=database.name)
            return

        database.last_full_backup = last_backups.get("D")
        database.last_diff_backup = last_backups.get("I")
        database.last_log_backup = last_backups.get("L")
        database.backup_history = history
        database.backups_collected = True

    def _collect_logins(self, instance: SqlInstance, connection: DatabaseConnection, snapshot: InstanceSnapshot) -> None:
        try:
            rows = connection.execute_query(queries.LOGINS)
            snapshot.logins = [
                LoginInfo(
                    login_name=as_str(row[0]),
                    login_type=as_optional_str(row[1]),
                    default_database=as_optional_str(row[2]),
                    is_disabled=as_bool(row[3]),
                    created_date=row[4],
                )
                for row in rows
                if row and row[0] is not None
            ]
        except HARVEST_QUERY_EXCEPTIONS as exc:
            snapshot.logins = []
            self._log_query_failure(instance, "logins", exc)
