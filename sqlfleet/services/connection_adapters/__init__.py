"""远端 SQL Server 连接层."""

from .connection_factory import ConnectionFactory
from .connection_profile import ConnectionProfile, build_connection_profile
from .connection_test_service import ConnectionTestService

__all__ = [
    "ConnectionFactory",
    "ConnectionProfile",
    "ConnectionTestService",
    "build_connection_profile",
]
