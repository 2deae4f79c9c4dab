"""SQL Server 数据库连接适配器."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import pymssql

from .base import (
    ConnectionAdapterError,
    DatabaseConnection,
    QueryParams,
    QueryResult,
)

if TYPE_CHECKING:
    from sqlfleet.services.connection_adapters.connection_profile import ConnectionProfile
    from sqlfleet.types import DBAPIConnection

SQLSERVER_CONNECTION_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionAdapterError,
    RuntimeError,
    ValueError,
    TypeError,
    ConnectionError,
    TimeoutError,
    OSError,
    pymssql.Error,
)

Connector = Callable[..., "DBAPIConnection"]


class SQLServerConnection(DatabaseConnection):
    """SQL Server 数据库连接.

    Args:
        profile: 连接描述.
        connector: DB-API 连接函数,默认 ``pymssql.connect``.

    """

    def __init__(self, profile: ConnectionProfile, *, connector: Connector | None = None) -> None:
        super().__init__(profile)
        self._connector: Connector = connector or pymssql.connect

    def _connect_kwargs(self) -> dict[str, Any]:
        """将连接描述转换为 pymssql 参数."""
        profile = self.profile
        kwargs: dict[str, Any] = {
            "server": profile.host,
            "port": profile.port,
            "user": profile.username or "",
            "password": profile.password or "",
            "database": profile.database,
            "timeout": profile.query_timeout,
            "login_timeout": profile.login_timeout,
            "tds_version": profile.tds_version,
        }
        if profile.encrypt:
            # FreeTDS 未提供信任证书开关, trust_server_certificate 仅随描述携带
            kwargs["encryption"] = "require"
        return kwargs

    def connect(self) -> bool:
        """建立 SQL Server 连接.

        Returns:
            bool: 连接成功返回 True,失败返回 False,失败原因保存在 ``last_error``.

        """
        if self.is_connected:
            return True
        try:
            self.connection = self._connector(**self._connect_kwargs())
        except SQLSERVER_CONNECTION_EXCEPTIONS as exc:
            self.last_error = str(exc) or type(exc).__name__
            self.db_logger.warning(
                "sqlserver_connect_failed",
                module="connection",
                host=self.profile.host,
                port=self.profile.port,
                database=self.profile.database,
                username=self.profile.username,
                error=self.last_error,
                error_type=type(exc).__name__,
            )
            return False
        self.is_connected = True
        self.last_error = None
        return True

    def disconnect(self) -> None:
        """断开 SQL Server 连接并清理状态.

        Returns:
            None

        """
        if self.connection:
            try:
                self.connection.close()
            except SQLSERVER_CONNECTION_EXCEPTIONS as exc:
                self.db_logger.warning(
                    "sqlserver_disconnect_failed",
                    module="connection",
                    host=self.profile.host,
                    error=str(exc),
                )
            finally:
                self.connection = None
                self.is_connected = False

    def execute_query(
        self,
        query: str,
        params: QueryParams = None,
    ) -> QueryResult:
        """执行 SQL 查询并返回 `fetchall` 结果.

        Args:
            query: SQL 语句.
            params: 查询参数.

        Returns:
            QueryResult: `fetchall` 的结果.

        """
        if not self.is_connected and not self.connect():
            msg = self.last_error or "无法建立数据库连接"
            raise ConnectionAdapterError(msg)

        cursor = self.connection.cursor()
        try:
            bound_params: Sequence[Any] | Mapping[str, Any]
            bound_params = params if isinstance(params, Mapping) else tuple(params or [])
            if bound_params:
                cursor.execute(query, bound_params)
            else:
                cursor.execute(query)
            return list(cursor.fetchall())
        finally:
            cursor.close()
