"""SQLFleet - Flask 应用初始化.

SQL Server 实例清单同步引擎.Flask 应用仅作为数据库扩展与日志配置的容器.
"""

import logging

from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from sqlfleet.settings import Settings
from sqlfleet.utils.structlog_config import configure_structlog, get_system_logger

# 初始化扩展
db = SQLAlchemy()
migrate = Migrate()


def create_app(*, settings: Settings | None = None) -> Flask:
    """创建Flask应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.

    Returns:
        Flask: Flask应用实例

    """
    resolved_settings = settings or Settings.load()
    app = Flask(__name__)

    # 配置应用
    configure_app(app, resolved_settings)

    # 初始化扩展
    initialize_extensions(app)

    # 配置统一日志系统
    configure_structlog(app)

    # 设置全局日志级别
    log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(getattr(logging, log_level_name, logging.INFO))

    get_system_logger().debug(
        "app_created",
        module="system",
        environment=resolved_settings.environment,
        database_backend=resolved_settings.database_url.split(":", 1)[0],
    )
    return app


def configure_app(app: Flask, settings: Settings) -> None:
    """写入 Settings 提供的配置.

    Args:
        app: Flask 应用实例.
        settings: 统一配置对象,包含环境变量解析、默认值与校验结果.

    Returns:
        None: 写入 `app.config` 后返回.

    """
    app.config.from_mapping(settings.to_flask_config())
    app.config["TESTING"] = settings.environment.strip().lower() in {"testing", "test"}
    app.extensions["sqlfleet_settings"] = settings


def initialize_extensions(app: Flask) -> None:
    """初始化数据库与迁移扩展.

    Args:
        app: Flask 应用实例.

    Returns:
        None: 所有扩展完成初始化后返回.

    """
    db.init_app(app)
    migrate.init_app(app, db)


from sqlfleet.models import (  # noqa: F401, E402
    backup_history,
    database_objects,
    instance,
    instance_database,
    instance_login,
)
