"""创建 SQL Server 清单表.

Revision ID: 20260901090000
Revises:
Create Date: 2026-09-01

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20260901090000"
down_revision = None
branch_labels = None
depends_on = None


def _database_fk() -> sa.Column:
    return sa.Column(
        "database_id",
        sa.Integer(),
        sa.ForeignKey("sql_databases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """执行升级迁移.

    创建实例、数据库、备份历史、登录名及库内结构对象表.

    Returns:
        None: 升级迁移执行完成后返回.

    """
    op.create_table(
        "sql_instances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("environment", sa.String(20), nullable=False, server_default="Other"),
        sa.Column("host", sa.String(255), nullable=False),
        sa.Column("port", sa.Integer(), nullable=False, server_default="1433"),
        sa.Column("auth_username", sa.String(255), nullable=True),
        sa.Column("auth_password_encrypted", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_status", sa.String(10), nullable=False, server_default="UNKNOWN"),
        sa.Column("version", sa.String(255), nullable=True),
        sa.Column("edition", sa.String(255), nullable=True),
        sa.Column("cpu_cores", sa.Integer(), nullable=True),
        sa.Column("total_memory_gb", sa.Numeric(18, 2), nullable=True),
        sa.Column("last_restart_time", sa.DateTime(), nullable=True),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "environment IN ('Production', 'Dev', 'QA', 'UAT', 'Other')",
            name="ck_sql_instances_environment",
        ),
        sa.CheckConstraint(
            "last_status IN ('UP', 'DOWN', 'UNKNOWN')",
            name="ck_sql_instances_last_status",
        ),
    )
    op.create_index("ix_sql_instances_name", "sql_instances", ["name"], unique=True)
    op.create_index("ix_sql_instances_last_status", "sql_instances", ["last_status"])

    op.create_table(
        "sql_databases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "instance_id",
            sa.Integer(),
            sa.ForeignKey("sql_instances.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(255), nullable=False, comment="数据库名称"),
        sa.Column("status", sa.String(60), nullable=True),
        sa.Column("recovery_model", sa.String(60), nullable=True),
        sa.Column("size_mb", sa.Numeric(18, 2), nullable=True),
        sa.Column("data_file_path", sa.Text(), nullable=True),
        sa.Column("data_file_size_mb", sa.Numeric(18, 2), nullable=True),
        sa.Column("log_file_path", sa.Text(), nullable=True),
        sa.Column("log_file_size_mb", sa.Numeric(18, 2), nullable=True),
        sa.Column("last_full_backup", sa.DateTime(), nullable=True),
        sa.Column("last_diff_backup", sa.DateTime(), nullable=True),
        sa.Column("last_log_backup", sa.DateTime(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        _updated_at(),
        sa.UniqueConstraint("instance_id", "name", name="uq_sql_databases_instance_name"),
        comment="实例数据库清单",
    )
    op.create_index("ix_sql_databases_name", "sql_databases", ["name"])

    op.create_table(
        "backup_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        _database_fk(),
        sa.Column("backup_type", sa.String(20), nullable=False),
        sa.Column("backup_start_date", sa.DateTime(), nullable=True),
        sa.Column("backup_finish_date", sa.DateTime(), nullable=True),
        sa.Column("backup_size_mb", sa.Numeric(18, 2), nullable=True),
        _updated_at(),
        sa.CheckConstraint("backup_type IN ('Full', 'Differential', 'Log')", name="ck_backup_history_type"),
    )
    op.create_index("ix_backup_history_finish", "backup_history", ["database_id", "backup_finish_date"])

    op.create_table(
        "sql_instance_logins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "instance_id",
            sa.Integer(),
            sa.ForeignKey("sql_instances.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("login_name", sa.String(255), nullable=False),
        sa.Column("login_type", sa.String(60), nullable=True),
        sa.Column("default_database", sa.String(255), nullable=True),
        sa.Column("is_disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_date", sa.DateTime(), nullable=True),
        _updated_at(),
    )

    op.create_table(
        "db_tables",
        sa.Column("id", sa.Integer(), primary_key=True),
        _database_fk(),
        sa.Column("schema_name", sa.String(255), nullable=True),
        sa.Column("table_name", sa.String(255), nullable=False),
        sa.Column("row_count", sa.BigInteger(), nullable=True),
        sa.Column("created_date", sa.DateTime(), nullable=True),
        _updated_at(),
    )
    op.create_table(
        "db_indexes",
        sa.Column("id", sa.Integer(), primary_key=True),
        _database_fk(),
        sa.Column("table_name", sa.String(255), nullable=True),
        sa.Column("index_name", sa.String(255), nullable=False),
        sa.Column("index_type", sa.String(60), nullable=True),
        sa.Column("is_unique", sa.Boolean(), nullable=False, server_default=sa.false()),
        _updated_at(),
    )
    op.create_table(
        "db_stored_procedures",
        sa.Column("id", sa.Integer(), primary_key=True),
        _database_fk(),
        sa.Column("schema_name", sa.String(255), nullable=True),
        sa.Column("procedure_name", sa.String(255), nullable=False),
        sa.Column("created_date", sa.DateTime(), nullable=True),
        _updated_at(),
    )
    op.create_table(
        "db_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        _database_fk(),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_type", sa.String(60), nullable=True),
        sa.Column("default_schema", sa.String(255), nullable=True),
        sa.Column("roles", sa.Text(), nullable=True),
        _updated_at(),
    )


def downgrade() -> None:
    """执行降级迁移.

    按依赖逆序删除全部清单表.

    Returns:
        None: 降级迁移执行完成后返回.

    """
    for table_name in (
        "db_users",
        "db_stored_procedures",
        "db_indexes",
        "db_tables",
        "sql_instance_logins",
        "backup_history",
        "sql_databases",
        "sql_instances",
    ):
        op.drop_table(table_name)
