"""SQLFleet 项目的结构化日志配置与辅助函数."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, cast

import structlog
from flask import Flask, current_app

from sqlfleet.settings import APP_VERSION

if TYPE_CHECKING:
    from structlog.typing import BindableLogger, EventDict, Processor


class StructlogConfig:
    """structlog 配置核心类.

    负责配置处理器链与 stdlib 日志级别,可重复调用,只会配置一次处理器链.

    Attributes:
        configured: 是否已配置标志.
        level: 当前生效的日志级别名称.

    Example:
        >>> config = StructlogConfig()
        >>> config.configure(app)
        >>> logger = get_logger('sync')

    """

    def __init__(self) -> None:
        self.configured = False
        self.level = "INFO"

    def configure(self, app: Flask | None = None) -> None:
        """初始化 structlog 处理器(幂等).

        Args:
            app: Flask 应用实例,可选.如果提供,将按 ``LOG_LEVEL`` 调整日志级别.

        Returns:
            None.

        """
        if not self.configured:
            processors = [
                structlog.stdlib.filter_by_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                self._add_global_context,
                self._get_console_renderer(),
            ]
            structlog.configure(
                processors=cast("list[structlog.types.Processor]", processors),
                context_class=dict,
                logger_factory=structlog.stdlib.LoggerFactory(),
                wrapper_class=structlog.stdlib.BoundLogger,
                cache_logger_on_first_use=True,
            )
            self._apply_level(self.level)
            self.configured = True

        if app is not None:
            self._apply_level(str(app.config.get("LOG_LEVEL", "INFO")))

    def _apply_level(self, level: str) -> None:
        """同步 stdlib 根 logger 的级别与输出."""
        self.level = level.upper()
        root = logging.getLogger()
        if not root.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            root.addHandler(handler)
        root.setLevel(getattr(logging, self.level, logging.INFO))

    @staticmethod
    def _add_global_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """附加应用名、版本等全局上下文.

        Args:
            logger: 当前 logger.
            method_name: 日志方法.
            event_dict: 事件字典.

        Returns:
            更新后的事件字典.

        """
        try:
            event_dict["app_name"] = current_app.config["APP_NAME"]
            event_dict["app_version"] = current_app.config["APP_VERSION"]
            event_dict["environment"] = current_app.config.get("ENV", "development")
        except (RuntimeError, KeyError):
            event_dict["app_name"] = "SQLFleet"
            event_dict["app_version"] = APP_VERSION

        event_dict["logger_name"] = getattr(_logger, "name", "unknown")
        return event_dict

    @staticmethod
    def _get_console_renderer() -> Processor:
        """根据终端能力返回渲染器.

        Returns:
            structlog renderer,用于控制台输出.

        """
        if sys.stdout.isatty():
            return structlog.dev.ConsoleRenderer(colors=True)
        return structlog.dev.ConsoleRenderer(colors=False)


structlog_config = StructlogConfig()


def get_logger(name: str) -> structlog.BoundLogger:
    """获取结构化日志记录器.

    Args:
        name: 日志记录器名称,通常使用模块名.

    Returns:
        绑定的 structlog 日志记录器实例.

    Example:
        >>> logger = get_logger('sync')
        >>> logger.info('instance_harvest_completed', instance='prod-01')

    """
    structlog_config.configure()
    return structlog.get_logger(name)


def configure_structlog(app: Flask) -> None:
    """配置 structlog 并注册 Flask 钩子.

    Args:
        app: Flask 应用实例.

    Returns:
        None.

    """
    structlog_config.configure(app)

    @app.teardown_appcontext
    def log_teardown_error(exception: BaseException | None) -> None:
        if exception:
            get_logger("app").error("app_context_teardown_error", module="system", exception=str(exception))


def log_info(message: str, module: str = "app", **kwargs: Any) -> None:
    """记录信息级别日志.

    Args:
        message: 日志消息.
        module: 模块名称,默认为 'app'.
        **kwargs: 额外的上下文信息.

    """
    get_logger("app").info(message, module=module, **kwargs)


def get_system_logger() -> structlog.BoundLogger:
    """返回系统级 logger."""
    return get_logger("system")


def get_db_logger() -> structlog.BoundLogger:
    """返回数据库操作 logger."""
    return get_logger("database")


def get_sync_logger() -> structlog.BoundLogger:
    """返回清单同步 logger."""
    return get_logger("sync")


__all__ = [
    "configure_structlog",
    "get_db_logger",
    "get_logger",
    "get_sync_logger",
    "get_system_logger",
    "log_info",
]
