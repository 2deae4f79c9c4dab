"""
清单刷新脚本单元测试
"""

import importlib
import json

import pymssql
import pytest

from sqlfleet.services.inventory_sync.coordinator import InventoryRefreshCoordinator

refresh_script = importlib.import_module("scripts.refresh_instance")


@pytest.fixture
def patched_script(monkeypatch, app, fake_server, settings):
    monkeypatch.setattr(refresh_script, "create_app", lambda: app)
    monkeypatch.setattr(
        refresh_script,
        "InventoryRefreshCoordinator",
        lambda: InventoryRefreshCoordinator(connection_factory=fake_server.factory(), settings=settings),
    )
    return refresh_script


@pytest.mark.unit
def test_parser_requires_a_target() -> None:
    with pytest.raises(SystemExit):
        refresh_script._build_parser().parse_args([])


@pytest.mark.unit
def test_parser_rejects_conflicting_targets() -> None:
    with pytest.raises(SystemExit):
        refresh_script._build_parser().parse_args(["--all", "--database-id", "3"])


@pytest.mark.unit
def test_probe_cannot_target_a_single_database(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        refresh_script.main(["--database-id", "3", "--probe"])

    assert exc_info.value.code == 2
    assert "--database-id" in capsys.readouterr().err


@pytest.mark.unit
def test_probe_is_accepted_for_instances() -> None:
    args = refresh_script._parse_args(["--instance-id", "3", "--probe"])

    assert args.probe is True
    assert args.instance_ids == [3]


@pytest.mark.unit
def test_main_refreshes_all_active_instances(patched_script, make_instance, capsys) -> None:
    make_instance("prod-sql-01")
    make_instance("prod-sql-02")
    make_instance("retired-sql", is_active=False)

    exit_code = patched_script.main(["--all"])

    results = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [item["status"] for item in results] == ["UP", "UP"]


@pytest.mark.unit
def test_main_probe_reports_down_without_failing(patched_script, make_instance, fake_server, capsys) -> None:
    instance = make_instance()
    fake_server.connect_error = pymssql.OperationalError("Login timeout expired")

    exit_code = patched_script.main(["--instance-id", str(instance.id), "--probe"])

    results = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert results[0]["instance_id"] == instance.id
    assert results[0]["status"] == "DOWN"


@pytest.mark.unit
def test_main_returns_non_zero_for_unknown_instance(patched_script, make_instance, capsys) -> None:
    instance = make_instance()

    exit_code = patched_script.main(["--instance-id", str(instance.id), "--instance-id", "9999"])

    results = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert [item["status"] for item in results] == ["UP", "FAILED"]
