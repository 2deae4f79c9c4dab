"""统一时间处理工具模块.

本地清单中的时间戳统一使用 UTC;远端 SQL Server 返回的时间保持原样入库.
"""

from datetime import UTC, datetime


class TimeUtils:
    """统一时间处理工具类."""

    @staticmethod
    def now() -> datetime:
        """获取当前 UTC 时间.

        Returns:
            带 UTC 时区信息的当前时间.

        """
        return datetime.now(UTC)


time_utils = TimeUtils()
