"""SQLFleet - 统一配置读取与校验.

目标:
- 将环境变量读取、默认值、校验集中到单一入口,避免散落在各模块中重复解析.
- `create_app(settings=...)` 只消费 Settings,不再直接读取环境变量.

说明:
- Settings 使用 `pydantic-settings` 的 `BaseSettings` 从环境变量与本地 `.env`(可选)读取配置.
- 生产环境默认更严格: 缺失关键密钥/连接串会直接抛出 ValueError.
"""

from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOTENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_ENVIRONMENT = "development"
APP_VERSION = "0.3.0"

DEFAULT_DB_CONNECTION_TIMEOUT_SECONDS = 30
DEFAULT_SQLALCHEMY_POOL_RECYCLE_SECONDS = 300

# 远端 SQL Server 的网络策略(部署级开关,不随实例变化)
DEFAULT_MSSQL_PORT = 1433
DEFAULT_MSSQL_CONNECT_TIMEOUT_SECONDS = 15
DEFAULT_MSSQL_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_MSSQL_TDS_VERSION = "7.4"

DEFAULT_BACKUP_HISTORY_DAYS = 30
DEFAULT_BACKUP_CONCURRENCY = 1

DEFAULT_LOG_LEVEL = "INFO"

# AES-256 需要 32 字节密钥
ENCRYPTION_KEY_LENGTH = 32

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _is_valid_encryption_key(value: str) -> bool:
    return len(value.encode("utf-8")) == ENCRYPTION_KEY_LENGTH


def _resolve_sqlite_fallback_path() -> Path:
    return PROJECT_ROOT / "userdata" / "sqlfleet_dev.db"


def _resolve_sqlite_fallback_url() -> str:
    return f"sqlite:///{_resolve_sqlite_fallback_path().absolute()}"


class Settings(BaseSettings):
    """应用运行时设置集合."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    environment: str = Field(default=DEFAULT_ENVIRONMENT, validation_alias="FLASK_ENV")
    debug: bool = Field(default=False, validation_alias="FLASK_DEBUG")

    app_name: str = Field(default="SQLFleet", validation_alias="APP_NAME")
    app_version: str = APP_VERSION

    database_url: str = Field(default="", validation_alias="DATABASE_URL")
    db_connection_timeout_seconds: int = Field(
        default=DEFAULT_DB_CONNECTION_TIMEOUT_SECONDS,
        validation_alias="DB_CONNECTION_TIMEOUT",
    )

    inventory_encryption_key: str = Field(default="", validation_alias="INVENTORY_ENCRYPTION_KEY")

    mssql_encrypt: bool = Field(default=False, validation_alias="MSSQL_ENCRYPT")
    mssql_trust_server_certificate: bool = Field(default=True, validation_alias="MSSQL_TRUST_SERVER_CERTIFICATE")
    mssql_connect_timeout_seconds: int = Field(
        default=DEFAULT_MSSQL_CONNECT_TIMEOUT_SECONDS,
        validation_alias="MSSQL_CONNECT_TIMEOUT",
    )
    mssql_request_timeout_seconds: int = Field(
        default=DEFAULT_MSSQL_REQUEST_TIMEOUT_SECONDS,
        validation_alias="MSSQL_REQUEST_TIMEOUT",
    )
    mssql_tds_version: str = Field(default=DEFAULT_MSSQL_TDS_VERSION, validation_alias="MSSQL_TDS_VERSION")

    harvest_backup_history_days: int = Field(
        default=DEFAULT_BACKUP_HISTORY_DAYS,
        validation_alias="HARVEST_BACKUP_HISTORY_DAYS",
    )
    harvest_backup_concurrency: int = Field(
        default=DEFAULT_BACKUP_CONCURRENCY,
        validation_alias="HARVEST_BACKUP_CONCURRENCY",
    )

    log_level: str = Field(default=DEFAULT_LOG_LEVEL, validation_alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        """当前是否为生产环境."""
        return self.environment.strip().lower() == "production"

    @property
    def sqlalchemy_engine_options(self) -> dict[str, object]:
        """生成 SQLAlchemy Engine 配置选项."""
        if self.database_url.startswith("sqlite"):
            return {"pool_pre_ping": True, "connect_args": {"check_same_thread": False}}
        return {
            "pool_pre_ping": True,
            "pool_recycle": DEFAULT_SQLALCHEMY_POOL_RECYCLE_SECONDS,
            "pool_timeout": self.db_connection_timeout_seconds,
            "echo": bool(self.debug),
        }

    def to_flask_config(self) -> dict[str, object]:
        """转换为 Flask app.config 可写入的配置字典."""
        return {
            "ENV": self.environment,
            "DEBUG": self.debug,
            "APP_NAME": self.app_name,
            "APP_VERSION": self.app_version,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SQLALCHEMY_ENGINE_OPTIONS": dict(self.sqlalchemy_engine_options),
            "LOG_LEVEL": self.log_level,
        }

    @classmethod
    def load(cls) -> Settings:
        """从环境变量加载 Settings 并执行必要校验."""
        load_dotenv(dotenv_path=DOTENV_PATH if DOTENV_PATH.exists() else None, override=False)
        return cls()

    @model_validator(mode="after")
    def _apply_defaults_and_validate(self) -> Settings:
        environment_normalized = self.environment.strip().lower()

        self._resolve_debug(environment_normalized)
        self._ensure_encryption_key(environment_normalized)
        self._ensure_database_url(environment_normalized)

        self._validate()
        return self

    def _resolve_debug(self, environment_normalized: str) -> None:
        if "debug" in self.model_fields_set:
            return
        object.__setattr__(self, "debug", environment_normalized != "production")

    def _ensure_encryption_key(self, environment_normalized: str) -> None:
        if self.inventory_encryption_key:
            return
        if environment_normalized == "production":
            return

        # token_hex(16) 生成 32 个十六进制字符,满足 AES-256 密钥长度
        object.__setattr__(self, "inventory_encryption_key", secrets.token_hex(ENCRYPTION_KEY_LENGTH // 2))
        if environment_normalized not in {"testing", "test"}:
            logger.warning("⚠️  未设置 INVENTORY_ENCRYPTION_KEY,将使用临时密钥(重启后无法解密已存储凭据)")

    def _ensure_database_url(self, environment_normalized: str) -> None:
        if self.database_url:
            return
        if environment_normalized == "production":
            raise ValueError("DATABASE_URL environment variable must be set in production")

        object.__setattr__(self, "database_url", _resolve_sqlite_fallback_url())
        if environment_normalized not in {"testing", "test"}:
            logger.warning(
                "⚠️  未设置 DATABASE_URL, 非 production 环境将回退 SQLite (sqlite_db_file=%s)",
                _resolve_sqlite_fallback_path().name,
            )

    def _validate(self) -> None:
        """执行跨字段校验,统一抛出可读的 ValueError."""
        errors: list[str] = []
        key = self.inventory_encryption_key
        checks: list[tuple[str, bool]] = [
            ("DB_CONNECTION_TIMEOUT 必须为正整数", self.db_connection_timeout_seconds <= 0),
            (
                "生产环境必须设置 INVENTORY_ENCRYPTION_KEY(用于凭据加/解密)",
                self.is_production and not key,
            ),
            (
                f"INVENTORY_ENCRYPTION_KEY 必须为 {ENCRYPTION_KEY_LENGTH} 字节",
                bool(key) and not _is_valid_encryption_key(key),
            ),
            ("MSSQL_CONNECT_TIMEOUT 必须为正整数(秒)", self.mssql_connect_timeout_seconds <= 0),
            ("MSSQL_REQUEST_TIMEOUT 必须为正整数(秒)", self.mssql_request_timeout_seconds <= 0),
            ("HARVEST_BACKUP_HISTORY_DAYS 必须为正整数(天)", self.harvest_backup_history_days <= 0),
            ("HARVEST_BACKUP_CONCURRENCY 必须为正整数", self.harvest_backup_concurrency <= 0),
            ("LOG_LEVEL 取值非法", self.log_level not in _VALID_LOG_LEVELS),
        ]
        for message, condition in checks:
            if condition:
                errors.append(message)

        if errors:
            joined = "; ".join(errors)
            raise ValueError(f"配置校验失败: {joined}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """获取进程级 Settings(延迟加载).

    Returns:
        Settings: 全局复用的配置对象.

    """
    return Settings.load()
