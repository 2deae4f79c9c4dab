"""数据类型转换工具.

将 DB-API 查询结果和调用方传入的负载值映射为具体的 str/bool/int/Decimal 类型.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

_TWO_PLACES = Decimal("0.01")


def as_str(value: Any, *, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)


def as_optional_str(value: Any) -> str | None:
    cleaned = as_str(value, default="").strip()
    return cleaned or None


def as_int(value: Any, *, default: int | None = None) -> int | None:
    if value is None:
        return default
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, (float, Decimal)):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return default
        try:
            return int(stripped, 10)
        except ValueError:
            return default
    return default


def as_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off", ""}:
            return False
        return default
    return bool(value)


def as_decimal(value: Any) -> Decimal | None:
    """转换为两位小数的 Decimal,无法识别时返回 None."""
    if value is None:
        return None
    try:
        return Decimal(str(value)).quantize(_TWO_PLACES)
    except InvalidOperation:
        return None
