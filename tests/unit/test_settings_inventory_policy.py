import pytest

from sqlfleet.settings import Settings


@pytest.mark.unit
def test_settings_defaults_for_remote_network_policy() -> None:
    settings = Settings.load()

    assert settings.mssql_encrypt is False
    assert settings.mssql_trust_server_certificate is True
    assert settings.mssql_connect_timeout_seconds == 15
    assert settings.mssql_request_timeout_seconds == 30
    assert settings.harvest_backup_history_days == 30
    assert settings.harvest_backup_concurrency == 1


@pytest.mark.unit
def test_settings_reads_network_policy_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MSSQL_ENCRYPT", "true")
    monkeypatch.setenv("MSSQL_TRUST_SERVER_CERTIFICATE", "false")
    monkeypatch.setenv("HARVEST_BACKUP_CONCURRENCY", "4")

    settings = Settings.load()

    assert settings.mssql_encrypt is True
    assert settings.mssql_trust_server_certificate is False
    assert settings.harvest_backup_concurrency == 4


@pytest.mark.unit
def test_settings_fails_fast_when_database_url_missing_in_production(monkeypatch) -> None:
    monkeypatch.setenv("FLASK_ENV", "production")
    # Prevent `load_dotenv()` from injecting a value from local `.env`.
    monkeypatch.setenv("DATABASE_URL", "")

    with pytest.raises(ValueError, match=r"DATABASE_URL.*production"):
        Settings.load()


@pytest.mark.unit
def test_settings_requires_encryption_key_in_production(monkeypatch) -> None:
    monkeypatch.setenv("FLASK_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("INVENTORY_ENCRYPTION_KEY", "")

    with pytest.raises(ValueError, match="INVENTORY_ENCRYPTION_KEY"):
        Settings.load()


@pytest.mark.unit
def test_settings_fails_fast_when_encryption_key_has_wrong_length(monkeypatch) -> None:
    monkeypatch.setenv("INVENTORY_ENCRYPTION_KEY", "too-short")

    with pytest.raises(ValueError, match=r"INVENTORY_ENCRYPTION_KEY 必须为 32 字节"):
        Settings.load()


@pytest.mark.unit
def test_settings_generates_temporary_key_outside_production(monkeypatch) -> None:
    monkeypatch.setenv("INVENTORY_ENCRYPTION_KEY", "")

    settings = Settings.load()

    assert len(settings.inventory_encryption_key.encode("utf-8")) == 32


@pytest.mark.unit
@pytest.mark.parametrize(
    ("env_name", "value"),
    [
        ("HARVEST_BACKUP_CONCURRENCY", "0"),
        ("HARVEST_BACKUP_HISTORY_DAYS", "-1"),
        ("MSSQL_CONNECT_TIMEOUT", "0"),
        ("LOG_LEVEL", "VERBOSE"),
    ],
)
def test_settings_rejects_invalid_values(monkeypatch, env_name, value) -> None:
    monkeypatch.setenv(env_name, value)

    with pytest.raises(ValueError, match="配置校验失败"):
        Settings.load()


@pytest.mark.unit
def test_settings_to_flask_config_exposes_database_uri() -> None:
    config = Settings.load().to_flask_config()

    assert config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
    assert config["SQLALCHEMY_TRACK_MODIFICATIONS"] is False
    assert config["APP_NAME"] == "SQLFleet"
