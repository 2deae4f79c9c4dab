# tests/unit/conftest.py
"""单元测试专用 fixtures.

提供内存 SQLite 应用、设置对象,以及伪造的 SQL Server(DB-API)连接.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pytest

from sqlfleet import create_app, db
from sqlfleet.models.instance import SqlInstance
from sqlfleet.services.connection_adapters.connection_factory import ConnectionFactory
from sqlfleet.settings import Settings
from sqlfleet.utils.password_crypto_utils import SecretVault

TEST_ENCRYPTION_KEY = "sqlfleet-test-key-0123456789abcd"


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    目标:
    - unit tests 不依赖外部数据库或 SQL Server
    - 避免开发者本机环境变量影响测试稳定性
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("INVENTORY_ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
    for name in (
        "MSSQL_ENCRYPT",
        "MSSQL_TRUST_SERVER_CERTIFICATE",
        "MSSQL_CONNECT_TIMEOUT",
        "MSSQL_REQUEST_TIMEOUT",
        "HARVEST_BACKUP_HISTORY_DAYS",
        "HARVEST_BACKUP_CONCURRENCY",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings.load()


@pytest.fixture
def vault() -> SecretVault:
    return SecretVault(TEST_ENCRYPTION_KEY)


@pytest.fixture
def app(settings):
    """创建测试应用并建表,整个测试期间保持 app context."""
    app = create_app(settings=settings)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_instance(app, vault) -> Callable[..., SqlInstance]:
    """创建并提交一个实例记录."""

    def _make(name: str = "prod-sql-01", *, password: str | None = "S3cret!", **fields: Any) -> SqlInstance:
        instance = SqlInstance(
            name=name,
            host=fields.pop("host", "10.0.0.5"),
            port=fields.pop("port", 1433),
            environment=fields.pop("environment", "Production"),
            auth_username=fields.pop("auth_username", "inventory"),
            auth_password_encrypted=vault.encrypt_secret(password),
            **fields,
        )
        db.session.add(instance)
        db.session.commit()
        return instance

    return _make


class FakeCursor:
    def __init__(self, server: FakeSQLServer, connection: FakeConnection) -> None:
        self.server = server
        self.connection = connection
        self._rows: list[tuple[Any, ...]] = []

    def execute(self, query: str, params: Any = None) -> None:
        self.server.executed.append((self.connection.database, query, params))
        response = self.server.responses.get(query, [])
        if callable(response):
            response = response(params)
        if isinstance(response, BaseException):
            raise response
        self._rows = list(response)

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self._rows

    def close(self) -> None:
        return None


class FakeConnection:
    def __init__(self, server: FakeSQLServer, kwargs: Mapping[str, Any]) -> None:
        self.server = server
        self.kwargs = dict(kwargs)
        self.database = kwargs.get("database")
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.server, self)

    def close(self) -> None:
        self.closed = True


class FakeSQLServer:
    """伪造的 SQL Server.

    ``responses`` 以查询语句为键,值可以是结果行列表、异常实例,
    或接收查询参数并返回前两者之一的函数.未登记的查询返回空结果.
    """

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.connect_error: BaseException | None = None
        self.connections: list[FakeConnection] = []
        self.executed: list[tuple[str | None, str, Any]] = []

    def connect(self, **kwargs: Any) -> FakeConnection:
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection(self, kwargs)
        self.connections.append(connection)
        return connection

    def factory(self) -> ConnectionFactory:
        return ConnectionFactory(connector=self.connect)

    def queries_for(self, query: str) -> list[tuple[str | None, Any]]:
        return [(database, params) for database, executed, params in self.executed if executed == query]


@pytest.fixture
def fake_server() -> FakeSQLServer:
    return FakeSQLServer()
