"""SQL Server 数据库结构对象采集."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from sqlfleet.services.connection_adapters.connection_factory import ConnectionFactory, default_connection_factory
from sqlfleet.services.connection_adapters.connection_profile import build_connection_profile
from sqlfleet.types import DatabaseSnapshot, IndexInfo, ProcedureInfo, TableInfo, UserInfo
from sqlfleet.types.converters import as_bool, as_int, as_optional_str, as_str
from sqlfleet.utils.structlog_config import get_sync_logger

from . import queries
from .instance_harvester import HARVEST_QUERY_EXCEPTIONS

if TYPE_CHECKING:
    from sqlfleet.models.instance import SqlInstance
    from sqlfleet.services.connection_adapters.adapters import DatabaseConnection
    from sqlfleet.settings import Settings

T = TypeVar("T")


def _table(row: Sequence[Any]) -> TableInfo:
    return TableInfo(
        schema_name=as_optional_str(row[0]),
        table_name=as_str(row[1]),
        row_count=as_int(row[2]),
        created_date=row[3],
    )


def _index(row: Sequence[Any]) -> IndexInfo:
    return IndexInfo(
        table_name=as_optional_str(row[0]),
        index_name=as_str(row[1]),
        index_type=as_optional_str(row[2]),
        is_unique=as_bool(row[3]),
    )


def _procedure(row: Sequence[Any]) -> ProcedureInfo:
    return ProcedureInfo(
        schema_name=as_optional_str(row[0]),
        procedure_name=as_str(row[1]),
        created_date=row[2],
    )


def _user(row: Sequence[Any]) -> UserInfo:
    return UserInfo(
        user_name=as_str(row[0]),
        user_type=as_optional_str(row[1]),
        default_schema=as_optional_str(row[2]),
        roles=as_optional_str(row[3]),
    )


class DatabaseHarvester:
    """数据库级结构对象采集器.

    表、索引、存储过程、用户四类查询互相独立:某类失败时该集合为 ``None``,
    错误信息追加到快照的 ``error``,其余查询照常执行.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.connection_factory = connection_factory or default_connection_factory
        self.settings = settings
        self.logger = get_sync_logger()

    def harvest(self, instance: SqlInstance, database_name: str) -> DatabaseSnapshot:
        """采集指定数据库的结构对象.

        Args:
            instance: 实例记录.
            database_name: 数据库名称,连接将直接进入该库.

        Returns:
            DatabaseSnapshot: 采集结果,连接失败时四类集合均为 ``None``.

        """
        profile = build_connection_profile(instance, database=database_name, settings=self.settings)
        connection = self.connection_factory.create_connection(profile)
        snapshot = DatabaseSnapshot()
        with connection:
            if not connection.connect():
                snapshot.add_error(connection.last_error or "无法建立数据库连接")
                self.logger.warning(
                    "database_harvest_connect_failed",
                    module="inventory_sync",
                    instance=instance.name,
                    database=database_name,
                    error=connection.last_error,
                )
                return snapshot

            snapshot.tables = self._collect(connection, snapshot, instance, database_name, "tables", queries.TABLES, _table)
            snapshot.indexes = self._collect(
                connection, snapshot, instance, database_name, "indexes", queries.INDEXES, _index
            )
            snapshot.stored_procedures = self._collect(
                connection, snapshot, instance, database_name, "stored_procedures", queries.PROCEDURES, _procedure
            )
            snapshot.users = self._collect(connection, snapshot, instance, database_name, "users", queries.USERS, _user)

        self.logger.info(
            "database_harvest_completed",
            module="inventory_sync",
            instance=instance.name,
            database=database_name,
            table_count=len(snapshot.tables) if snapshot.tables is not None else None,
            index_count=len(snapshot.indexes) if snapshot.indexes is not None else None,
            procedure_count=len(snapshot.stored_procedures) if snapshot.stored_procedures is not None else None,
            user_count=len(snapshot.users) if snapshot.users is not None else None,
            error=snapshot.error,
        )
        return snapshot

    def _collect(
        self,
        connection: DatabaseConnection,
        snapshot: DatabaseSnapshot,
        instance: SqlInstance,
        database_name: str,
        collection: str,
        query: str,
        build: Callable[[Sequence[Any]], T],
    ) -> list[T] | None:
        try:
            rows = connection.execute_query(query)
            return [build(row) for row in rows]
        except HARVEST_QUERY_EXCEPTIONS as exc:
            snapshot.add_error(f"{collection}: {exc}")
            self.logger.warning(
                "database_harvest_query_failed",
                module="inventory_sync",
                instance=instance.name,
                database=database_name,
                collection=collection,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
