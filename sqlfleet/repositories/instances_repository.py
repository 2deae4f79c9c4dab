"""实例 Repository.

职责:
- 仅负责 Query 组装与数据库读取/暂存
- 不做序列化、不 commit
"""

from __future__ import annotations

from sqlalchemy import select

from sqlfleet import db
from sqlfleet.core.exceptions import NotFoundError
from sqlfleet.models.instance import SqlInstance


class InstancesRepository:
    """实例 Repository."""

    @staticmethod
    def get_instance(instance_id: int) -> SqlInstance:
        instance = db.session.get(SqlInstance, instance_id)
        if instance is None:
            raise NotFoundError(message_key="INSTANCE_NOT_FOUND", extra={"instance_id": instance_id})
        return instance

    @staticmethod
    def find_by_name(name: str, *, exclude_id: int | None = None) -> SqlInstance | None:
        stmt = select(SqlInstance).where(SqlInstance.name == name)
        if exclude_id is not None:
            stmt = stmt.where(SqlInstance.id != exclude_id)
        return db.session.scalars(stmt).first()

    @staticmethod
    def list_active_instances() -> list[SqlInstance]:
        stmt = select(SqlInstance).where(SqlInstance.is_active.is_(True)).order_by(SqlInstance.name)
        return list(db.session.scalars(stmt))

    @staticmethod
    def add(instance: SqlInstance) -> SqlInstance:
        db.session.add(instance)
        db.session.flush()
        return instance

    @staticmethod
    def list_disabled_instances() -> list[SqlInstance]:
        stmt = (
            select(SqlInstance)
            .where(SqlInstance.is_active.is_(False))
            .order_by(SqlInstance.disabled_at.desc(), SqlInstance.name)
        )
        return list(db.session.scalars(stmt))

    @staticmethod
    def list_by_ag_name(ag_name: str) -> list[SqlInstance]:
        """返回同一可用性组内的启用实例."""
        stmt = (
            select(SqlInstance)
            .where(SqlInstance.is_active.is_(True), SqlInstance.ag_name == ag_name)
            .order_by(SqlInstance.name)
        )
        return list(db.session.scalars(stmt))
