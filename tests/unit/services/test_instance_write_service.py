"""
实例写操作服务单元测试
"""

from datetime import UTC, datetime

import pytest

from sqlfleet import db
from sqlfleet.core.exceptions import ConflictError, NotFoundError, ValidationError
from sqlfleet.models.instance import SqlInstance
from sqlfleet.repositories.instances_repository import InstancesRepository
from sqlfleet.services.instances.instance_write_service import InstanceWriteService


@pytest.fixture
def service(app, vault):
    return InstanceWriteService(vault=vault)


def _payload(**overrides):
    payload = {
        "name": "prod-sql-01",
        "host": " 10.0.0.5 ",
        "port": "1433",
        "environment": "Production",
        "auth_username": "inventory",
        "auth_password": " S3cret! ",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
def test_create_encrypts_password_before_storage(service, vault) -> None:
    instance = service.create(_payload())
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert stored.host == "10.0.0.5"
    assert stored.port == 1433
    assert stored.auth_password_encrypted != " S3cret! "
    assert vault.is_encrypted(stored.auth_password_encrypted)
    assert vault.decrypt_secret(stored.auth_password_encrypted) == " S3cret! "


@pytest.mark.unit
def test_to_dict_never_exposes_credentials(service) -> None:
    instance = service.create(_payload())

    data = instance.to_dict()

    assert "auth_password_encrypted" not in data
    assert "auth_password" not in data
    assert data["last_status"] == "UNKNOWN"


@pytest.mark.unit
def test_create_defaults_port_and_environment(service) -> None:
    instance = service.create(_payload(port=None, environment=None))

    assert instance.port == 1433
    assert instance.environment == "Other"


@pytest.mark.unit
def test_create_rejects_duplicate_name(service) -> None:
    service.create(_payload())
    db.session.commit()

    with pytest.raises(ConflictError) as exc_info:
        service.create(_payload(host="10.0.0.6"))

    assert exc_info.value.message_key == "INSTANCE_NAME_EXISTS"


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "  "},
        {"host": ""},
        {"port": "not-a-port"},
        {"port": 0},
        {"port": 70000},
        {"environment": "Staging"},
        {"is_active": "yes"},
    ],
)
def test_create_rejects_invalid_payload(service, overrides) -> None:
    with pytest.raises(ValidationError):
        service.create(_payload(**overrides))


@pytest.mark.unit
def test_update_keeps_password_when_blank(service, vault) -> None:
    instance = service.create(_payload())
    db.session.commit()
    token = instance.auth_password_encrypted

    service.update(instance.id, {"auth_password": "", "description": " 核心交易库 "})
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert stored.auth_password_encrypted == token
    assert stored.description == "核心交易库"


@pytest.mark.unit
def test_update_replaces_password(service, vault) -> None:
    instance = service.create(_payload())
    db.session.commit()

    service.update(instance.id, {"auth_password": "N3wSecret"})
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert vault.decrypt_secret(stored.auth_password_encrypted) == "N3wSecret"


@pytest.mark.unit
def test_update_rejects_name_taken_by_other_instance(service) -> None:
    service.create(_payload())
    other = service.create(_payload(name="prod-sql-02"))
    db.session.commit()

    with pytest.raises(ConflictError):
        service.update(other.id, {"name": "prod-sql-01"})


@pytest.mark.unit
def test_update_allows_keeping_own_name(service) -> None:
    instance = service.create(_payload())
    db.session.commit()

    updated = service.update(instance.id, {"name": "prod-sql-01", "is_active": False})

    assert updated.is_active is False


@pytest.mark.unit
def test_update_rejects_unknown_instance(service) -> None:
    with pytest.raises(NotFoundError):
        service.update(999, {"host": "10.0.0.9"})


@pytest.mark.unit
def test_create_keeps_ag_name_only_for_always_on(service) -> None:
    grouped = service.create(_payload(is_always_on=True, ag_name=" AG-Sales "))
    standalone = service.create(_payload(name="prod-sql-02", ag_name="AG-Sales"))

    assert grouped.is_always_on is True
    assert grouped.ag_name == "AG-Sales"
    assert standalone.is_always_on is False
    assert standalone.ag_name is None


@pytest.mark.unit
def test_create_rejects_non_boolean_always_on(service) -> None:
    with pytest.raises(ValidationError):
        service.create(_payload(is_always_on="true"))


@pytest.mark.unit
def test_update_leaving_availability_group_clears_ag_name(service) -> None:
    instance = service.create(_payload(is_always_on=True, ag_name="AG-Sales"))
    db.session.commit()

    service.update(instance.id, {"is_always_on": False})
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert stored.is_always_on is False
    assert stored.ag_name is None


@pytest.mark.unit
def test_list_by_ag_name_returns_active_members(service) -> None:
    service.create(_payload(name="ag-node-b", is_always_on=True, ag_name="AG-Sales"))
    service.create(_payload(name="ag-node-a", is_always_on=True, ag_name="AG-Sales"))
    retired = service.create(_payload(name="ag-node-c", is_always_on=True, ag_name="AG-Sales"))
    service.create(_payload(name="other", is_always_on=True, ag_name="AG-HR"))
    service.disable(retired.id, reason="迁移完成", disabled_type="permanent")
    db.session.commit()

    members = InstancesRepository.list_by_ag_name("AG-Sales")

    assert [instance.name for instance in members] == ["ag-node-a", "ag-node-b"]


@pytest.mark.unit
def test_disable_records_reason_type_and_time(service) -> None:
    instance = service.create(_payload())
    db.session.commit()
    disabled_at = datetime(2026, 10, 18, 8, 0, tzinfo=UTC)

    service.disable(instance.id, reason=" 维护窗口 ", disabled_type="temporary", now=disabled_at)
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert stored.is_active is False
    assert stored.disabled_reason == "维护窗口"
    assert stored.disabled_type == "temporary"
    assert stored.disabled_at.replace(tzinfo=None) == disabled_at.replace(tzinfo=None)
    assert [item.id for item in InstancesRepository.list_disabled_instances()] == [instance.id]
    assert InstancesRepository.list_active_instances() == []


@pytest.mark.unit
@pytest.mark.parametrize(
    ("reason", "disabled_type"),
    [("", "temporary"), ("  ", "permanent"), ("维护", "forever"), ("维护", None)],
)
def test_disable_rejects_invalid_input(service, reason, disabled_type) -> None:
    instance = service.create(_payload())

    with pytest.raises(ValidationError):
        service.disable(instance.id, reason=reason, disabled_type=disabled_type)

    assert instance.is_active is True
    assert instance.disabled_at is None


@pytest.mark.unit
def test_disable_rejects_unknown_instance(service) -> None:
    with pytest.raises(NotFoundError):
        service.disable(404, reason="下线", disabled_type="permanent")


@pytest.mark.unit
def test_reactivate_clears_disable_fields(service) -> None:
    instance = service.create(_payload())
    service.disable(instance.id, reason="维护", disabled_type="temporary")
    db.session.commit()

    service.reactivate(instance.id)
    db.session.commit()

    stored = db.session.get(SqlInstance, instance.id)
    assert stored.is_active is True
    assert stored.disabled_reason is None
    assert stored.disabled_type is None
    assert stored.disabled_at is None
    assert InstancesRepository.list_disabled_instances() == []


@pytest.mark.unit
def test_update_reenabling_instance_clears_disable_fields(service) -> None:
    instance = service.create(_payload())
    service.disable(instance.id, reason="维护", disabled_type="temporary")
    db.session.commit()

    service.update(instance.id, {"is_active": True})

    assert instance.is_active is True
    assert instance.disabled_type is None
