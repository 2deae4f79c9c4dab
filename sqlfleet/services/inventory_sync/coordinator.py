"""清单刷新协调器:采集实例 → 入库 → 逐库采集 → 入库."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from sqlfleet import db
from sqlfleet.core.exceptions import AppError, NotFoundError
from sqlfleet.models.instance import SqlInstance
from sqlfleet.models.instance_database import SqlDatabase
from sqlfleet.services.connection_adapters.connection_test_service import ConnectionTestService
from sqlfleet.types import InstanceRefreshResult, ProbeResult
from sqlfleet.utils.structlog_config import get_sync_logger

from .database_harvester import HARVEST_QUERY_EXCEPTIONS, DatabaseHarvester
from .instance_harvester import InstanceHarvester
from .reconciler import InventoryReconciler

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, scoped_session

    from sqlfleet.services.connection_adapters.connection_factory import ConnectionFactory
    from sqlfleet.settings import Settings
    from sqlfleet.types import DatabaseSnapshot

# 单库刷新失败时需要隔离的异常
DATABASE_REFRESH_EXCEPTIONS: tuple[type[BaseException], ...] = (AppError, *HARVEST_QUERY_EXCEPTIONS)


class InventoryRefreshCoordinator:
    """清单刷新协调器.

    负责组织一次实例刷新:实例采集并入库;实例为 UP 时,
    对该实例已入库的每个数据库执行结构采集并入库,单库失败只记录不中断.

    Example:
        >>> coordinator = InventoryRefreshCoordinator()
        >>> result = coordinator.refresh_instance(instance.id)
        >>> result.database_errors
        {}

    """

    def __init__(
        self,
        *,
        session: Session | scoped_session | None = None,
        connection_factory: ConnectionFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session if session is not None else db.session
        self.logger = get_sync_logger()
        self.prober = ConnectionTestService(connection_factory, settings)
        self.instance_harvester = InstanceHarvester(connection_factory, settings)
        self.database_harvester = DatabaseHarvester(connection_factory, settings)
        self.reconciler = InventoryReconciler(self.session)

    def _load_active_instance(self, instance_id: int) -> SqlInstance:
        instance = self.session.get(SqlInstance, instance_id)
        if instance is None or not instance.is_active:
            raise NotFoundError(message_key="INSTANCE_NOT_FOUND", extra={"instance_id": instance_id})
        return instance

    def probe_instance(self, instance_id: int, *, now: datetime | None = None) -> ProbeResult:
        """探测实例并记录状态、错误与检查时间,不触碰版本等字段.

        Args:
            instance_id: 实例 ID.
            now: 写入时间.

        Returns:
            ProbeResult: 探测结果.

        """
        instance = self._load_active_instance(instance_id)
        result = self.prober.probe(instance)
        self.reconciler.save_status(instance_id, result.status, result.error, now=now)
        return result

    def refresh_instance(self, instance_id: int, *, now: datetime | None = None) -> InstanceRefreshResult:
        """刷新实例及其全部数据库.

        Args:
            instance_id: 实例 ID.
            now: 写入时间.

        Returns:
            InstanceRefreshResult: 刷新汇总,单库失败记录在 ``database_errors``.

        Raises:
            NotFoundError: 实例不存在或已停用.
            DatabaseError: 实例快照入库失败.

        """
        instance = self._load_active_instance(instance_id)
        instance_name = instance.name

        snapshot = self.instance_harvester.harvest(instance)
        self.reconciler.save_instance(instance_id, snapshot, now=now)

        result = InstanceRefreshResult(instance_id=instance_id, status=snapshot.status, error=snapshot.error)
        if not snapshot.is_up:
            self.logger.warning(
                "instance_refresh_down",
                module="inventory_sync",
                instance=instance_name,
                error=snapshot.error,
            )
            return result

        databases = list(
            self.session.scalars(
                select(SqlDatabase).where(SqlDatabase.instance_id == instance_id).order_by(SqlDatabase.name),
            ),
        )
        result.database_count = len(databases)
        for database in databases:
            database_id, database_name = database.id, database.name
            try:
                db_snapshot = self.database_harvester.harvest(instance, database_name)
                self.reconciler.save_database(database_id, db_snapshot, now=now)
            except DATABASE_REFRESH_EXCEPTIONS as exc:
                result.database_errors[database_name] = str(exc)
                self.logger.exception(
                    "database_refresh_failed",
                    module="inventory_sync",
                    instance=instance_name,
                    database=database_name,
                    error=str(exc),
                )
                continue
            result.refreshed_databases.append(database_name)
            if db_snapshot.error:
                result.database_errors[database_name] = db_snapshot.error

        self.logger.info(
            "instance_refresh_completed",
            module="inventory_sync",
            instance=instance_name,
            database_count=result.database_count,
            refreshed=len(result.refreshed_databases),
            failed=len(result.database_errors),
        )
        return result

    def refresh_database(self, database_id: int, *, now: datetime | None = None) -> DatabaseSnapshot:
        """刷新单个数据库的结构对象.

        Args:
            database_id: 数据库记录 ID.
            now: 写入时间.

        Returns:
            DatabaseSnapshot: 采集结果.

        """
        database = self.session.get(SqlDatabase, database_id)
        if database is None:
            raise NotFoundError(message_key="DATABASE_NOT_FOUND", extra={"database_id": database_id})
        instance = self._load_active_instance(database.instance_id)

        snapshot = self.database_harvester.harvest(instance, database.name)
        self.reconciler.save_database(database_id, snapshot, now=now)
        return snapshot
