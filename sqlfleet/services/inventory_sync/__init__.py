"""SQL Server 清单同步引擎.

对外入口:
- probe: 探测实例可达性
- harvest_instance / harvest_database: 采集远端快照
- reconcile_instance / reconcile_database: 快照入库
- encrypt_secret / decrypt_secret: 凭据加/解密
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlfleet.services.connection_adapters.connection_test_service import ConnectionTestService
from sqlfleet.utils.password_crypto_utils import decrypt_secret, encrypt_secret

from .coordinator import InventoryRefreshCoordinator
from .database_harvester import DatabaseHarvester
from .instance_harvester import InstanceHarvester
from .reconciler import InventoryReconciler

if TYPE_CHECKING:
    from sqlfleet.models.instance import SqlInstance
    from sqlfleet.types import DatabaseSnapshot, InstanceSnapshot, ProbeResult


def probe(instance: SqlInstance) -> ProbeResult:
    return ConnectionTestService().probe(instance)


def harvest_instance(instance: SqlInstance) -> InstanceSnapshot:
    return InstanceHarvester().harvest(instance)


def harvest_database(instance: SqlInstance, database_name: str) -> DatabaseSnapshot:
    return DatabaseHarvester().harvest(instance, database_name)


def reconcile_instance(instance_id: int, snapshot: InstanceSnapshot, *, now: datetime | None = None) -> None:
    InventoryReconciler().save_instance(instance_id, snapshot, now=now)


def reconcile_database(database_id: int, snapshot: DatabaseSnapshot, *, now: datetime | None = None) -> None:
    InventoryReconciler().save_database(database_id, snapshot, now=now)


__all__ = [
    "DatabaseHarvester",
    "InstanceHarvester",
    "InventoryReconciler",
    "InventoryRefreshCoordinator",
    "decrypt_secret",
    "encrypt_secret",
    "harvest_database",
    "harvest_instance",
    "probe",
    "reconcile_database",
    "reconcile_instance",
]
