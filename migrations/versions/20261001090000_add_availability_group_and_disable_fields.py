"""sql_instances 增加可用性组与停用信息字段.

Revision ID: 20261001090000
Revises: 20260915100000
Create Date: 2026-10-01

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20261001090000"
down_revision = "20260915100000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """执行升级迁移.

    记录实例所属的 Always On 可用性组,以及停用原因、类型与时间.

    Returns:
        None: 升级迁移执行完成后返回.

    """
    with op.batch_alter_table("sql_instances") as batch_op:
        batch_op.add_column(sa.Column("is_always_on", sa.Boolean(), nullable=False, server_default=sa.false()))
        batch_op.add_column(sa.Column("ag_name", sa.String(255), nullable=True))
        batch_op.add_column(sa.Column("disabled_reason", sa.Text(), nullable=True))
        batch_op.add_column(sa.Column("disabled_type", sa.String(20), nullable=True))
        batch_op.add_column(sa.Column("disabled_at", sa.DateTime(timezone=True), nullable=True))
        batch_op.create_check_constraint(
            "ck_sql_instances_disabled_type",
            "disabled_type IS NULL OR disabled_type IN ('permanent', 'temporary')",
        )
        batch_op.create_index("ix_sql_instances_ag_name", ["ag_name"])


def downgrade() -> None:
    """执行降级迁移.

    Returns:
        None: 降级迁移执行完成后返回.

    """
    with op.batch_alter_table("sql_instances") as batch_op:
        batch_op.drop_index("ix_sql_instances_ag_name")
        batch_op.drop_constraint("ck_sql_instances_disabled_type", type_="check")
        batch_op.drop_column("disabled_at")
        batch_op.drop_column("disabled_type")
        batch_op.drop_column("disabled_reason")
        batch_op.drop_column("ag_name")
        batch_op.drop_column("is_always_on")
