#!/usr/bin/env python3
"""手动触发 SQL Server 清单刷新.

用法:
- 刷新单个实例(含其全部数据库): ``--instance-id 3``
- 刷新全部启用实例: ``--all``
- 只探测可达性: ``--instance-id 3 --probe``
- 只刷新单个数据库的结构对象: ``--database-id 12``
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from sqlfleet import create_app
from sqlfleet.core.exceptions import AppError
from sqlfleet.repositories.instances_repository import InstancesRepository
from sqlfleet.services.inventory_sync import InventoryRefreshCoordinator
from sqlfleet.utils.structlog_config import get_sync_logger


def _echo(message: str = "") -> None:
    """向 stdout 输出一行文本."""
    sys.stdout.write(f"{message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="采集 SQL Server 实例元数据并写入本地清单.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--instance-id", type=int, action="append", dest="instance_ids", help="实例 ID,可重复")
    target.add_argument("--all", action="store_true", help="刷新全部启用的实例")
    target.add_argument("--database-id", type=int, help="只刷新单个数据库的结构对象")
    parser.add_argument("--probe", action="store_true", help="只探测实例可达性,不采集元数据;不能与 --database-id 同用")
    return parser


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.probe and args.database_id is not None:
        parser.error("--probe 只作用于实例,不能与 --database-id 同时使用")
    return args


def _run(args: argparse.Namespace, coordinator: InventoryRefreshCoordinator) -> list[dict[str, Any]]:
    if args.database_id is not None:
        snapshot = coordinator.refresh_database(args.database_id)
        return [{"database_id": args.database_id, "error": snapshot.error}]

    instance_ids = args.instance_ids or [instance.id for instance in InstancesRepository.list_active_instances()]
    results: list[dict[str, Any]] = []
    for instance_id in instance_ids:
        # 单个实例失败不影响后续实例
        try:
            if args.probe:
                probe_result = coordinator.probe_instance(instance_id)
                results.append({"instance_id": instance_id, **asdict(probe_result)})
            else:
                results.append(asdict(coordinator.refresh_instance(instance_id)))
        except AppError as exc:
            results.append({"instance_id": instance_id, "status": "FAILED", "error": exc.message})
    return results


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    sync_logger = get_sync_logger()

    app = create_app()
    with app.app_context():
        try:
            results = _run(args, InventoryRefreshCoordinator())
        except AppError as exc:
            sync_logger.exception("refresh_script_failed", module="scripts", error=exc.message)
            _echo(json.dumps({"error": exc.message}, ensure_ascii=False))
            return 1

    _echo(json.dumps(results, ensure_ascii=False, indent=2, default=str))
    return 1 if any(item.get("status") == "FAILED" for item in results) else 0


if __name__ == "__main__":
    raise SystemExit(main())
