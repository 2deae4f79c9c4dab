"""状态类型常量.

定义实例可达性与备份类型等业务状态值,避免魔法字符串.
"""

from typing import ClassVar


class InstanceStatus:
    """实例可达性状态常量.

    UNKNOWN 仅出现在尚未采集过的实例上,采集结果只会是 UP 或 DOWN.
    """

    UP = "UP"
    DOWN = "DOWN"
    UNKNOWN = "UNKNOWN"

    ALL: ClassVar[tuple[str, ...]] = (UP, DOWN, UNKNOWN)


class BackupType:
    """备份类型常量.

    msdb.dbo.backupset.type 使用单字母编码,入库时统一转换为可读名称.
    """

    FULL = "Full"
    DIFFERENTIAL = "Differential"
    LOG = "Log"

    ALL: ClassVar[tuple[str, ...]] = (FULL, DIFFERENTIAL, LOG)

    # backupset.type -> 可读名称
    CODE_MAP: ClassVar[dict[str, str]] = {
        "D": FULL,
        "I": DIFFERENTIAL,
        "L": LOG,
    }

    @classmethod
    def from_code(cls, code: str | None) -> str | None:
        """将 backupset.type 编码转换为可读名称,未知编码原样返回."""
        if code is None:
            return None
        return cls.CODE_MAP.get(code, code)


class Environment:
    """实例所属环境标签."""

    PRODUCTION = "Production"
    DEV = "Dev"
    QA = "QA"
    UAT = "UAT"
    OTHER = "Other"

    ALL: ClassVar[tuple[str, ...]] = (PRODUCTION, DEV, QA, UAT, OTHER)


class DisabledType:
    """实例停用类型."""

    PERMANENT = "permanent"
    TEMPORARY = "temporary"

    ALL: ClassVar[tuple[str, ...]] = (PERMANENT, TEMPORARY)
