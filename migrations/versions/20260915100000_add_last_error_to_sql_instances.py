"""sql_instances 增加 last_error 字段.

Revision ID: 20260915100000
Revises: 20260901090000
Create Date: 2026-09-15

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20260915100000"
down_revision = "20260901090000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """执行升级迁移.

    记录实例最近一次不可达时的错误信息.

    Returns:
        None: 升级迁移执行完成后返回.

    """
    with op.batch_alter_table("sql_instances") as batch_op:
        batch_op.add_column(sa.Column("last_error", sa.Text(), nullable=True))


def downgrade() -> None:
    """执行降级迁移.

    Returns:
        None: 降级迁移执行完成后返回.

    """
    with op.batch_alter_table("sql_instances") as batch_op:
        batch_op.drop_column("last_error")
