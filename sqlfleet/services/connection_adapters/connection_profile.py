"""SQL Server 连接描述构建."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlfleet.settings import DEFAULT_MSSQL_PORT, Settings, get_settings
from sqlfleet.utils.password_crypto_utils import SecretVault, get_secret_vault

if TYPE_CHECKING:
    from sqlfleet.models.instance import SqlInstance

# 未指定数据库时连接到 master
DEFAULT_DATABASE = "master"


@dataclass(frozen=True, slots=True)
class ConnectionProfile:
    """一次远端连接所需的全部参数.

    Attributes:
        host: 主机地址.
        port: 端口号.
        username: 登录名.
        password: 明文密码,仅在内存中短暂存在.
        database: 目标数据库.
        encrypt: 是否要求传输加密.
        trust_server_certificate: 是否信任服务器证书.
        login_timeout: 建立连接超时(秒).
        query_timeout: 单条查询超时(秒).
        tds_version: TDS 协议版本.

    """

    host: str
    port: int
    username: str | None
    password: str | None
    database: str
    encrypt: bool
    trust_server_certificate: bool
    login_timeout: int
    query_timeout: int
    tds_version: str

    def __repr__(self) -> str:
        masked = "***" if self.password else None
        return (
            f"ConnectionProfile(host={self.host!r}, port={self.port}, username={self.username!r}, "
            f"password={masked!r}, database={self.database!r}, encrypt={self.encrypt}, "
            f"trust_server_certificate={self.trust_server_certificate})"
        )

    __str__ = __repr__


def build_connection_profile(
    instance: SqlInstance,
    *,
    database: str | None = None,
    settings: Settings | None = None,
    vault: SecretVault | None = None,
) -> ConnectionProfile:
    """根据实例记录构建连接描述.

    纯函数,不做任何网络 I/O.

    Args:
        instance: 实例记录,提供 host/port/登录名/加密密码.
        database: 目标数据库,缺省为 master.
        settings: 部署级网络策略,缺省使用进程级 Settings.
        vault: 凭据保险箱,缺省使用进程级实例.

    Returns:
        ConnectionProfile: 连接描述.

    """
    resolved_settings = settings or get_settings()
    resolved_vault = vault or get_secret_vault()
    return ConnectionProfile(
        host=instance.host,
        port=int(instance.port or DEFAULT_MSSQL_PORT),
        username=instance.auth_username,
        password=resolved_vault.decrypt_secret(instance.auth_password_encrypted),
        database=database or DEFAULT_DATABASE,
        encrypt=resolved_settings.mssql_encrypt,
        trust_server_certificate=resolved_settings.mssql_trust_server_certificate,
        login_timeout=resolved_settings.mssql_connect_timeout_seconds,
        query_timeout=resolved_settings.mssql_request_timeout_seconds,
        tds_version=resolved_settings.mssql_tds_version,
    )
