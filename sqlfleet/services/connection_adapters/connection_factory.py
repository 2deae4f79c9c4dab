"""数据库连接工厂."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .adapters import DatabaseConnection, SQLServerConnection

if TYPE_CHECKING:
    from .adapters.sqlserver_adapter import Connector
    from .connection_profile import ConnectionProfile


class ConnectionFactory:
    """数据库连接工厂.

    根据连接描述创建 SQL Server 连接适配器.``connector`` 可替换底层驱动入口,
    便于在没有真实服务器的环境下验证采集逻辑.

    Example:
        >>> factory = ConnectionFactory()
        >>> connection = factory.create_connection(profile)
        >>> connection.connect()

    """

    def __init__(self, connector: Connector | None = None) -> None:
        self._connector = connector

    def create_connection(self, profile: ConnectionProfile) -> DatabaseConnection:
        """创建数据库连接对象(尚未连接).

        Args:
            profile: 连接描述.

        Returns:
            DatabaseConnection: SQL Server 连接适配器.

        """
        return SQLServerConnection(profile, connector=self._connector)


default_connection_factory = ConnectionFactory()
