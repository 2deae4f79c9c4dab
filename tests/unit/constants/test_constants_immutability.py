"""验证常量集合的不可变性."""

from sqlfleet.constants import SYSTEM_DATABASES, BackupType, Environment, InstanceStatus


def test_status_collections_are_tuples() -> None:
    """确保状态常量集合使用 tuple."""
    assert isinstance(InstanceStatus.ALL, tuple)
    assert isinstance(BackupType.ALL, tuple)
    assert isinstance(Environment.ALL, tuple)
    assert isinstance(SYSTEM_DATABASES, tuple)
    assert "master" in SYSTEM_DATABASES


def test_backup_code_map_covers_all_types() -> None:
    """备份编码映射与可读名称集合一致."""
    assert set(BackupType.CODE_MAP.values()) == set(BackupType.ALL)
    assert BackupType.from_code(None) is None
