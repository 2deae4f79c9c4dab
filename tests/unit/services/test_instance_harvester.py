"""
实例元数据采集单元测试
"""

import threading
from datetime import datetime
from decimal import Decimal

import pymssql
import pytest

from sqlfleet.constants import BackupType, InstanceStatus
from sqlfleet.services.connection_adapters.connection_factory import ConnectionFactory
from sqlfleet.services.inventory_sync import queries
from sqlfleet.services.inventory_sync.instance_harvester import InstanceHarvester

SALES_FULL = datetime(2026, 10, 17, 1, 0)
SALES_DIFF = datetime(2026, 10, 17, 13, 0)
SALES_LOG = datetime(2026, 10, 17, 23, 45)


def _last_backups(params):
    if params == ("Sales",):
        return [("D", SALES_FULL), ("I", SALES_DIFF), ("L", SALES_LOG)]
    return []


def _backup_history(params):
    if params[0] == "Sales":
        return [
            ("L", SALES_LOG, datetime(2026, 10, 17, 23, 46), Decimal("12.5")),
            ("D", SALES_FULL, datetime(2026, 10, 17, 1, 20), Decimal("2048.00")),
        ]
    return []


@pytest.fixture
def reachable_server(fake_server):
    fake_server.responses.update(
        {
            queries.SERVER_PROPERTIES: [("16.0.1000.6", "Developer Edition (64-bit)", "RTM")],
            queries.SYSTEM_INFO: [(datetime(2026, 10, 1, 8, 0), 8, Decimal("31.25"))],
            queries.USER_DATABASES: [
                (
                    "Sales",
                    "ONLINE",
                    "FULL",
                    Decimal("1024.00"),
                    "D:\\data\\Sales.mdf",
                    Decimal("768.00"),
                    "L:\\log\\Sales_log.ldf",
                    Decimal("256.00"),
                ),
                ("Staging", "ONLINE", "SIMPLE", Decimal("64.00"), "D:\\data\\Staging.mdf", Decimal("64.00"), None, None),
            ],
            queries.LAST_BACKUPS: _last_backups,
            queries.BACKUP_HISTORY: _backup_history,
            queries.LOGINS: [
                ("sa", "SQL_LOGIN", "master", True, datetime(2020, 1, 1)),
                ("CORP\\dba", "WINDOWS_LOGIN", "Sales", False, datetime(2021, 6, 1)),
            ],
        },
    )
    return fake_server


@pytest.mark.unit
def test_harvest_returns_down_snapshot_when_connect_fails(make_instance, fake_server, settings) -> None:
    """连接失败时返回 DOWN,其余字段保持默认值."""
    instance = make_instance()
    error = pymssql.OperationalError("Login failed for user 'inventory'.")
    fake_server.connect_error = error

    snapshot = InstanceHarvester(fake_server.factory(), settings).harvest(instance)

    assert snapshot.status == InstanceStatus.DOWN
    assert snapshot.error == str(error)
    assert snapshot.version is None
    assert snapshot.edition is None
    assert snapshot.cpu_cores is None
    assert snapshot.total_memory_gb is None
    assert snapshot.databases == []
    assert snapshot.logins == []


@pytest.mark.unit
def test_harvest_collects_instance_metadata(make_instance, reachable_server, settings) -> None:
    instance = make_instance()

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.status == InstanceStatus.UP
    assert snapshot.error is None
    assert snapshot.version == "16.0.1000.6 (RTM)"
    assert snapshot.edition == "Developer Edition (64-bit)"
    assert snapshot.last_restart_time == datetime(2026, 10, 1, 8, 0)
    assert snapshot.cpu_cores == 8
    assert snapshot.total_memory_gb == Decimal("31.25")
    assert [database.name for database in snapshot.databases] == ["Sales", "Staging"]
    assert [login.login_name for login in snapshot.logins] == ["sa", "CORP\\dba"]
    assert snapshot.logins[0].is_disabled is True
    assert snapshot.logins[1].default_database == "Sales"


@pytest.mark.unit
def test_harvest_collects_database_files_and_backups(make_instance, reachable_server, settings) -> None:
    instance = make_instance()

    sales, staging = InstanceHarvester(reachable_server.factory(), settings).harvest(instance).databases

    assert sales.recovery_model == "FULL"
    assert sales.size_mb == Decimal("1024.00")
    assert sales.log_file_path == "L:\\log\\Sales_log.ldf"
    assert sales.last_full_backup == SALES_FULL
    assert sales.last_diff_backup == SALES_DIFF
    assert sales.last_log_backup == SALES_LOG
    assert sales.backups_collected is True
    assert [entry.backup_type for entry in sales.backup_history] == [BackupType.LOG, BackupType.FULL]
    assert sales.backup_history[1].backup_size_mb == Decimal("2048.00")

    # 没有日志文件的库保持为空,而不是 0
    assert staging.log_file_path is None
    assert staging.log_file_size_mb is None
    assert staging.last_full_backup is None
    assert staging.backup_history == []
    assert staging.backups_collected is True


@pytest.mark.unit
def test_harvest_passes_database_name_and_history_window(make_instance, reachable_server, settings) -> None:
    instance = make_instance()

    InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert [params for _, params in reachable_server.queries_for(queries.LAST_BACKUPS)] == [("Sales",), ("Staging",)]
    assert [params for _, params in reachable_server.queries_for(queries.BACKUP_HISTORY)] == [
        ("Sales", 30),
        ("Staging", 30),
    ]
    # 所有查询都在 master 上执行,且只用一条连接
    assert {database for database, _, _ in reachable_server.executed} == {"master"}
    assert len(reachable_server.connections) == 1
    assert reachable_server.connections[0].closed is True


@pytest.mark.unit
def test_backup_failure_is_isolated_to_one_database(make_instance, reachable_server, settings) -> None:
    """单库备份查询失败只让该库历史为空,兄弟库不受影响."""
    instance = make_instance()

    def _history(params):
        if params[0] == "Sales":
            return pymssql.OperationalError("The SELECT permission was denied on the object 'backupset'")
        return [("D", datetime(2026, 10, 16, 2, 0), datetime(2026, 10, 16, 2, 5), Decimal("10.00"))]

    reachable_server.responses[queries.BACKUP_HISTORY] = _history

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)
    sales, staging = snapshot.databases

    assert snapshot.status == InstanceStatus.UP
    assert sales.backup_history == []
    assert sales.backups_collected is False
    assert sales.size_mb == Decimal("1024.00")
    assert staging.backups_collected is True
    assert [entry.backup_type for entry in staging.backup_history] == [BackupType.FULL]
    assert len(snapshot.logins) == 2


@pytest.mark.unit
def test_version_failure_does_not_block_other_queries(make_instance, reachable_server, settings) -> None:
    instance = make_instance()
    reachable_server.responses[queries.SERVER_PROPERTIES] = pymssql.ProgrammingError("Invalid column name")

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.status == InstanceStatus.UP
    assert snapshot.version is None
    assert snapshot.edition is None
    assert snapshot.cpu_cores == 8
    assert len(snapshot.databases) == 2


@pytest.mark.unit
def test_short_version_row_degrades_instead_of_raising(make_instance, reachable_server, settings) -> None:
    instance = make_instance()
    reachable_server.responses[queries.SERVER_PROPERTIES] = [("16.0.1000.6",)]

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.status == InstanceStatus.UP
    assert snapshot.version is None
    assert snapshot.edition is None
    assert snapshot.cpu_cores == 8
    assert [database.name for database in snapshot.databases] == ["Sales", "Staging"]


@pytest.mark.unit
def test_system_info_failure_leaves_hardware_fields_empty(make_instance, reachable_server, settings) -> None:
    instance = make_instance()
    reachable_server.responses[queries.SYSTEM_INFO] = pymssql.OperationalError("VIEW SERVER STATE permission denied")

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.version == "16.0.1000.6 (RTM)"
    assert snapshot.last_restart_time is None
    assert snapshot.cpu_cores is None
    assert snapshot.total_memory_gb is None
    assert len(snapshot.databases) == 2


@pytest.mark.unit
def test_login_failure_yields_empty_login_list(make_instance, reachable_server, settings) -> None:
    instance = make_instance()
    reachable_server.responses[queries.LOGINS] = pymssql.OperationalError("permission denied")

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.logins == []
    assert len(snapshot.databases) == 2


@pytest.mark.unit
def test_database_list_failure_skips_backup_queries(make_instance, reachable_server, settings) -> None:
    instance = make_instance()
    reachable_server.responses[queries.USER_DATABASES] = pymssql.OperationalError("timeout")

    snapshot = InstanceHarvester(reachable_server.factory(), settings).harvest(instance)

    assert snapshot.status == InstanceStatus.UP
    assert snapshot.databases == []
    assert reachable_server.queries_for(queries.LAST_BACKUPS) == []


@pytest.mark.unit
def test_concurrent_backup_harvest_keeps_database_order(make_instance, reachable_server, settings) -> None:
    """并发上限大于 1 时每个 worker 使用独立连接,结果顺序不变."""
    instance = make_instance()

    snapshot = InstanceHarvester(reachable_server.factory(), settings, backup_concurrency=2).harvest(instance)

    assert [database.name for database in snapshot.databases] == ["Sales", "Staging"]
    assert snapshot.databases[0].last_full_backup == SALES_FULL
    assert snapshot.databases[0].backups_collected is True
    assert snapshot.databases[1].backups_collected is True
    assert len(reachable_server.connections) == 3
    assert all(connection.closed for connection in reachable_server.connections)


@pytest.mark.unit
def test_backup_worker_connect_failure_only_affects_its_bucket(make_instance, reachable_server, settings) -> None:
    """某个 worker 连不上时,只有它负责的库备份为空,其他 worker 的库照常采集."""
    instance = make_instance()
    reachable_server.responses[queries.USER_DATABASES] = [
        (name, "ONLINE", "FULL", Decimal("1.00"), None, None, None, None) for name in ("Archive", "Sales", "Staging")
    ]
    lock = threading.Lock()
    attempts: list[int] = []

    def _connect(**kwargs):
        with lock:
            attempts.append(len(attempts) + 1)
            attempt = attempts[-1]
        # 第 1 次是采集连接,第 2 次起是备份 worker
        if attempt == 2:
            raise pymssql.OperationalError("Login timeout expired")
        return reachable_server.connect(**kwargs)

    factory = ConnectionFactory(connector=_connect)
    snapshot = InstanceHarvester(factory, settings, backup_concurrency=2).harvest(instance)

    collected = {database.name: database.backups_collected for database in snapshot.databases}
    failed = {name for name, ok in collected.items() if not ok}
    # 轮转分桶: worker 0 负责 Archive 与 Staging,worker 1 负责 Sales
    assert failed in ({"Archive", "Staging"}, {"Sales"})
    assert len(attempts) == 3
    sales = next(database for database in snapshot.databases if database.name == "Sales")
    if "Sales" in failed:
        assert sales.backup_history == []
        assert sales.last_full_backup is None
    else:
        assert sales.last_full_backup == SALES_FULL
        assert [entry.backup_type for entry in sales.backup_history] == [BackupType.LOG, BackupType.FULL]
    assert snapshot.status == InstanceStatus.UP
    assert [database.name for database in snapshot.databases] == ["Archive", "Sales", "Staging"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("code", "expected"),
    [("D", "Full"), ("I", "Differential"), ("L", "Log"), ("F", "F")],
)
def test_backup_type_codes_are_mapped_to_names(code, expected) -> None:
    assert BackupType.from_code(code) == expected
