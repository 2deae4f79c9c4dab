"""数据库连接适配器集合."""

from .base import ConnectionAdapterError, DatabaseConnection, QueryParams, QueryResult
from .sqlserver_adapter import SQLSERVER_CONNECTION_EXCEPTIONS, SQLServerConnection

__all__ = [
    "SQLSERVER_CONNECTION_EXCEPTIONS",
    "ConnectionAdapterError",
    "DatabaseConnection",
    "QueryParams",
    "QueryResult",
    "SQLServerConnection",
]
