"""SQLFleet - 实例可达性探测服务."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlfleet.constants import InstanceStatus
from sqlfleet.types import ProbeResult
from sqlfleet.utils.structlog_config import get_sync_logger

from .connection_factory import ConnectionFactory, default_connection_factory
from .connection_profile import build_connection_profile

if TYPE_CHECKING:
    from sqlfleet.models.instance import SqlInstance
    from sqlfleet.settings import Settings


class ConnectionTestService:
    """实例可达性探测服务.

    建立连接后立即关闭;无法建立连接时返回 DOWN 与驱动原始错误信息,
    不向调用方抛出连接异常.

    Example:
        >>> service = ConnectionTestService()
        >>> result = service.probe(instance)
        >>> result.status
        'UP'

    """

    def __init__(
        self,
        connection_factory: ConnectionFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.connection_factory = connection_factory or default_connection_factory
        self.settings = settings
        self.test_logger = get_sync_logger()

    def probe(self, instance: SqlInstance) -> ProbeResult:
        """探测实例是否可达.

        Args:
            instance: 实例记录.

        Returns:
            ProbeResult: UP 或 DOWN(附错误信息).

        """
        profile = build_connection_profile(instance, settings=self.settings)
        connection = self.connection_factory.create_connection(profile)
        with connection:
            if not connection.connect():
                self.test_logger.warning(
                    "instance_probe_down",
                    module="connection_test",
                    instance_id=instance.id,
                    instance=instance.name,
                    host=instance.host,
                    error=connection.last_error,
                )
                return ProbeResult(status=InstanceStatus.DOWN, error=connection.last_error)

        self.test_logger.info(
            "instance_probe_up",
            module="connection_test",
            instance_id=instance.id,
            instance=instance.name,
        )
        return ProbeResult(status=InstanceStatus.UP)
