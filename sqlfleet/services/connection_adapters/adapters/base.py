"""数据库连接基类与公共工具."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeAlias

from sqlfleet.utils.structlog_config import get_db_logger

if TYPE_CHECKING:
    from sqlfleet.services.connection_adapters.connection_profile import ConnectionProfile

QueryParams: TypeAlias = Sequence[Any] | Mapping[str, Any] | None
QueryResultRow: TypeAlias = Sequence[Any]
QueryResult: TypeAlias = list[QueryResultRow]


class ConnectionAdapterError(RuntimeError):
    """数据库连接适配器异常."""


class DatabaseConnection(ABC):
    """数据库连接抽象基类.

    Attributes:
        profile: 连接描述.
        connection: 底层 DB-API 连接.
        is_connected: 是否已连接.
        last_error: 最近一次连接失败的原始错误信息.

    """

    def __init__(self, profile: ConnectionProfile) -> None:
        self.profile = profile
        self.db_logger = get_db_logger()
        self.connection: Any | None = None
        self.is_connected = False
        self.last_error: str | None = None

    @abstractmethod
    def connect(self) -> bool:
        """建立数据库连接."""

    @abstractmethod
    def disconnect(self) -> None:
        """断开数据库连接."""

    @abstractmethod
    def execute_query(self, query: str, params: QueryParams = None) -> QueryResult:
        """执行查询并返回结果."""

    def __enter__(self) -> DatabaseConnection:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.disconnect()
