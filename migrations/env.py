"""Alembic 环境脚本.

通过 `flask --app sqlfleet:create_app db ...` 执行时注入 Flask 上下文,提供在线/离线两种迁移入口.
"""

from __future__ import annotations

import logging
from logging.config import fileConfig
from typing import TYPE_CHECKING, Any

from alembic import context
from flask import current_app

if TYPE_CHECKING:
    from alembic.runtime.environment import MigrationContext
    from sqlalchemy.engine import Engine
    from sqlalchemy.sql.schema import MetaData

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")


def get_engine() -> Engine:
    """获取当前 Flask 应用绑定的 SQLAlchemy Engine."""
    return current_app.extensions["migrate"].db.engine


def get_engine_url() -> str:
    """生成数据库连接串,百分号需转义以适配 ConfigParser.

    Returns:
        str: 保留密码的数据库连接串.

    """
    return get_engine().url.render_as_string(hide_password=False).replace("%", "%%")


config.set_main_option("sqlalchemy.url", get_engine_url())
target_db = current_app.extensions["migrate"].db


def get_metadata() -> MetaData:
    """获取清单模型的元数据对象."""
    if hasattr(target_db, "metadatas"):
        return target_db.metadatas[None]
    return target_db.metadata


def run_migrations_offline() -> None:
    """以离线模式运行迁移,仅输出 SQL."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=get_metadata(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """以在线模式运行迁移,直接对数据库执行变更."""

    def process_revision_directives(
        _context: MigrationContext,
        _revision: tuple[str, str] | str | None,
        directives: list[Any],
    ) -> None:
        """自动生成时剔除空的升级操作."""
        if getattr(config.cmd_opts, "autogenerate", False):
            script = directives[0]
            if script.upgrade_ops.is_empty():
                directives[:] = []
                logger.info("No changes in schema detected.")

    conf_args = current_app.extensions["migrate"].configure_args
    if conf_args.get("process_revision_directives") is None:
        conf_args["process_revision_directives"] = process_revision_directives

    with get_engine().connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=get_metadata(),
            # SQLite 需要批量模式才能修改表结构
            render_as_batch=connection.dialect.name == "sqlite",
            **conf_args,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
