"""凭据加密工具.

用于安全地存储和获取远端 SQL Server 登录密码.

令牌格式为 ``hex(iv):hex(ciphertext)``,算法为 AES-256-CBC + PKCS7 填充,
与既有数据中已写入的令牌保持兼容.
"""

from __future__ import annotations

import os
import string
from functools import lru_cache

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from sqlfleet.settings import ENCRYPTION_KEY_LENGTH, get_settings
from sqlfleet.utils.structlog_config import get_system_logger

IV_LENGTH = 16
TOKEN_SEPARATOR = ":"

_HEX_DIGITS = frozenset(string.hexdigits)


def _is_hex(value: str) -> bool:
    return bool(value) and len(value) % 2 == 0 and all(char in _HEX_DIGITS for char in value)


class SecretVault:
    """凭据保险箱.

    使用 AES-256-CBC 对远端登录密码进行加/解密,每次加密都生成新的随机 IV.

    Attributes:
        key: 32 字节加密密钥.

    Example:
        >>> vault = SecretVault("0" * 32)
        >>> token = vault.encrypt_secret("my_password")
        >>> vault.decrypt_secret(token)
        'my_password'

    """

    def __init__(self, key: str | bytes) -> None:
        key_bytes = key.encode("utf-8") if isinstance(key, str) else key
        if len(key_bytes) != ENCRYPTION_KEY_LENGTH:
            msg = f"加密密钥长度必须为 {ENCRYPTION_KEY_LENGTH} 字节"
            raise ValueError(msg)
        self.key = key_bytes
        self._algorithm = algorithms.AES(self.key)

    def encrypt_secret(self, secret: str | None) -> str | None:
        """加密凭据.

        Args:
            secret: 原始密码,为空时直接返回 None.

        Returns:
            str | None: ``iv:ciphertext`` 形式的令牌.

        """
        if not secret:
            return None

        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(secret.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(self._algorithm, modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}{TOKEN_SEPARATOR}{ciphertext.hex()}"

    def decrypt_secret(self, token: str | None) -> str | None:
        """解密凭据.

        不符合 ``iv:ciphertext`` 形态的值视为历史明文,原样返回.
        形态正确但无法解密的令牌同样原样返回,并记录告警.

        Args:
            token: 加密令牌.

        Returns:
            str | None: 原始密码,``None`` 与空串原样返回.

        """
        if not token:
            return token

        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 2:
            get_system_logger().debug("credential_legacy_plaintext", module="password_crypto")
            return token

        iv_hex, ciphertext_hex = parts
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            decryptor = Cipher(self._algorithm, modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
        except ValueError as exc:
            # 常见原因: 密钥与写入时不一致
            get_system_logger().warning(
                "credential_decrypt_failed",
                module="password_crypto",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return token

    @staticmethod
    def is_encrypted(token: str | None) -> bool:
        """检查值是否具备 ``iv:ciphertext`` 令牌形态.

        Args:
            token: 待检查的值

        Returns:
            bool: 是否为加密令牌

        """
        if not token:
            return False
        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 2:
            return False
        iv_hex, ciphertext_hex = parts
        return (
            len(iv_hex) == IV_LENGTH * 2
            and _is_hex(iv_hex)
            and _is_hex(ciphertext_hex)
            and len(ciphertext_hex) % (IV_LENGTH * 2) == 0
        )


@lru_cache(maxsize=1)
def get_secret_vault() -> SecretVault:
    """获取凭据保险箱实例(延迟初始化).

    Returns:
        SecretVault: 使用 ``INVENTORY_ENCRYPTION_KEY`` 的全局复用实例.

    """
    return SecretVault(get_settings().inventory_encryption_key)


def encrypt_secret(secret: str | None) -> str | None:
    """使用进程级密钥加密凭据."""
    return get_secret_vault().encrypt_secret(secret)


def decrypt_secret(token: str | None) -> str | None:
    """使用进程级密钥解密凭据."""
    return get_secret_vault().decrypt_secret(token)


def is_encrypted(token: str | None) -> bool:
    """检查值是否为加密令牌."""
    return SecretVault.is_encrypted(token)
