"""实例写操作 Service.

职责:
- 处理实例的创建/更新/改密/停用/重新启用
- 负责校验与数据规范化,密码经凭据保险箱加密后才进入存储
- 调用 repository 执行 add/flush
- 不 commit
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlfleet.constants import DisabledType, Environment, ErrorMessages
from sqlfleet.core.exceptions import ConflictError, ValidationError
from sqlfleet.models.instance import InstanceCreateParams, SqlInstance
from sqlfleet.repositories.instances_repository import InstancesRepository
from sqlfleet.settings import DEFAULT_MSSQL_PORT
from sqlfleet.types.converters import as_optional_str
from sqlfleet.utils.password_crypto_utils import SecretVault, get_secret_vault
from sqlfleet.utils.structlog_config import log_info
from sqlfleet.utils.time_utils import time_utils

_MAX_PORT = 65535


class InstanceWriteService:
    """实例写操作服务."""

    def __init__(self, repository: InstancesRepository | None = None, vault: SecretVault | None = None) -> None:
        self._repository = repository or InstancesRepository()
        self._vault = vault

    @property
    def vault(self) -> SecretVault:
        return self._vault or get_secret_vault()

    def create(self, payload: Mapping[str, object] | None) -> SqlInstance:
        sanitized = self._sanitize(payload or {})

        name = self._require_text(sanitized.get("name"), field="实例名称")
        host = self._require_text(sanitized.get("host"), field="主机地址")
        port = self._parse_port(sanitized.get("port"), default=DEFAULT_MSSQL_PORT)
        environment = self._parse_environment(sanitized.get("environment"), default=Environment.OTHER)
        is_active = self._parse_is_active_value(sanitized.get("is_active"), default=True)
        is_always_on = self._parse_bool(sanitized.get("is_always_on"), field="is_always_on", default=False)

        if self._repository.find_by_name(name):
            raise ConflictError(message_key="INSTANCE_NAME_EXISTS")

        instance = SqlInstance(
            InstanceCreateParams(
                name=name,
                host=host,
                environment=environment,
                port=port,
                is_always_on=is_always_on,
                ag_name=self._ag_name(sanitized.get("ag_name"), is_always_on=is_always_on),
                auth_username=as_optional_str(sanitized.get("auth_username")),
                auth_password_encrypted=self.vault.encrypt_secret(self._password(sanitized.get("auth_password"))),
                description=as_optional_str(sanitized.get("description")),
                is_active=is_active,
            ),
        )

        self._repository.add(instance)
        log_info(
            "instance_created",
            module="instances",
            instance_id=instance.id,
            instance=instance.name,
            host=instance.host,
            port=instance.port,
            environment=instance.environment,
        )
        return instance

    def update(self, instance_id: int, payload: Mapping[str, object] | None) -> SqlInstance:
        instance = self._repository.get_instance(instance_id)
        sanitized = self._sanitize(payload or {})

        if "name" in sanitized:
            name = self._require_text(sanitized.get("name"), field="实例名称")
            if self._repository.find_by_name(name, exclude_id=instance_id):
                raise ConflictError(message_key="INSTANCE_NAME_EXISTS")
            instance.name = name
        if "host" in sanitized:
            instance.host = self._require_text(sanitized.get("host"), field="主机地址")
        if "port" in sanitized:
            instance.port = self._parse_port(sanitized.get("port"), default=DEFAULT_MSSQL_PORT)
        if "environment" in sanitized:
            instance.environment = self._parse_environment(sanitized.get("environment"), default=instance.environment)
        if "is_always_on" in sanitized:
            instance.is_always_on = self._parse_bool(
                sanitized.get("is_always_on"), field="is_always_on", default=instance.is_always_on
            )
        if "ag_name" in sanitized or not instance.is_always_on:
            instance.ag_name = self._ag_name(
                sanitized.get("ag_name", instance.ag_name), is_always_on=instance.is_always_on
            )
        if "auth_username" in sanitized:
            instance.auth_username = as_optional_str(sanitized.get("auth_username"))
        if "description" in sanitized:
            instance.description = as_optional_str(sanitized.get("description"))
        is_active = self._parse_is_active_value(sanitized.get("is_active"), default=instance.is_active)
        if is_active and not instance.is_active:
            self._clear_disabled(instance)
        instance.is_active = is_active
        # 空密码表示保持原密码不变
        password = self._password(sanitized.get("auth_password"))
        if password:
            self.set_password(instance, password)

        self._repository.add(instance)
        log_info(
            "instance_updated",
            module="instances",
            instance_id=instance.id,
            instance=instance.name,
            host=instance.host,
            port=instance.port,
            is_active=instance.is_active,
        )
        return instance

    def set_password(self, instance: SqlInstance, plaintext: str | None) -> SqlInstance:
        """加密并写入登录密码,明文不会落库."""
        instance.auth_password_encrypted = self.vault.encrypt_secret(plaintext)
        return instance

    def disable(
        self,
        instance_id: int,
        *,
        reason: object,
        disabled_type: object,
        now: datetime | None = None,
    ) -> SqlInstance:
        """停用实例(软删除),记录原因与类型.

        停用后实例不再参与采集,历史清单数据保留.

        Args:
            instance_id: 实例 ID.
            reason: 停用原因,不能为空.
            disabled_type: ``permanent`` 或 ``temporary``.
            now: 停用时间,缺省为当前 UTC 时间.

        Returns:
            SqlInstance: 已停用的实例.

        Raises:
            NotFoundError: 实例不存在.
            ValidationError: 原因为空或类型不合法.

        """
        instance = self._repository.get_instance(instance_id)
        disabled_reason = self._require_text(reason, field="停用原因")
        if disabled_type not in DisabledType.ALL:
            allowed = ", ".join(DisabledType.ALL)
            raise ValidationError(f"{ErrorMessages.VALIDATION_ERROR}: 停用类型仅支持 {allowed}")

        now_ts = now or time_utils.now()
        instance.is_active = False
        instance.disabled_reason = disabled_reason
        instance.disabled_type = str(disabled_type)
        instance.disabled_at = now_ts
        instance.updated_at = now_ts

        self._repository.add(instance)
        log_info(
            "instance_disabled",
            module="instances",
            instance_id=instance.id,
            instance=instance.name,
            disabled_type=instance.disabled_type,
        )
        return instance

    def reactivate(self, instance_id: int) -> SqlInstance:
        """重新启用实例并清空停用信息."""
        instance = self._repository.get_instance(instance_id)
        instance.is_active = True
        self._clear_disabled(instance)

        self._repository.add(instance)
        log_info("instance_reactivated", module="instances", instance_id=instance.id, instance=instance.name)
        return instance

    @staticmethod
    def _sanitize(payload: Mapping[str, object]) -> dict[str, object]:
        sanitized: dict[str, object] = {}
        for key, value in (payload or {}).items():
            if key == "auth_password":
                # 密码保留首尾空白
                sanitized[key] = value
            elif isinstance(value, str):
                sanitized[key] = value.strip()
            elif isinstance(value, (int, float, bool)) or value is None:
                sanitized[key] = value
            else:
                sanitized[key] = str(value).strip()
        return sanitized

    @staticmethod
    def _password(value: object) -> str | None:
        if value is None or value == "":
            return None
        return value if isinstance(value, str) else str(value)

    @staticmethod
    def _require_text(value: object, *, field: str) -> str:
        text = as_optional_str(value)
        if not text:
            raise ValidationError(f"{field}不能为空")
        return text

    @staticmethod
    def _parse_port(value: object, *, default: int) -> int:
        if value is None or value == "":
            return default
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValidationError("端口号格式不正确")
        try:
            port = int(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("端口号格式不正确") from exc
        if not 0 < port <= _MAX_PORT:
            raise ValidationError("端口号必须在 1-65535 之间")
        return port

    @staticmethod
    def _parse_environment(value: object, *, default: str) -> str:
        if value is None or value == "":
            return default
        if value not in Environment.ALL:
            allowed = ", ".join(Environment.ALL)
            raise ValidationError(f"{ErrorMessages.VALIDATION_ERROR}: environment 仅支持 {allowed}")
        return str(value)

    @classmethod
    def _parse_is_active_value(cls, value: Any, *, default: bool) -> bool:
        return cls._parse_bool(value, field="is_active", default=default)

    @staticmethod
    def _parse_bool(value: Any, *, field: str, default: bool) -> bool:
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{field} 仅支持布尔类型")

    @staticmethod
    def _ag_name(value: object, *, is_always_on: bool) -> str | None:
        # 非 Always On 实例不保留可用性组名称
        if not is_always_on:
            return None
        return as_optional_str(value)

    @staticmethod
    def _clear_disabled(instance: SqlInstance) -> None:
        instance.disabled_reason = None
        instance.disabled_type = None
        instance.disabled_at = None
