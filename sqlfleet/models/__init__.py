"""数据模型模块.

定义 SQL Server 实例清单的全部数据库模型.

主要模型:
- SqlInstance: 远端 SQL Server 实例
- SqlDatabase: 实例下的用户数据库
- BackupHistory: 数据库备份历史
- SqlInstanceLogin: 实例级登录名
- DbTable / DbIndex / DbStoredProcedure / DbUser: 数据库内结构对象
"""

__all__ = [
    "BackupHistory",
    "DbIndex",
    "DbStoredProcedure",
    "DbTable",
    "DbUser",
    "SqlDatabase",
    "SqlInstance",
    "SqlInstanceLogin",
]


def __getattr__(name: str):
    """延迟加载模型, 避免初始化周期引发的循环导入."""

    if name not in __all__:
        msg = f"module 'sqlfleet.models' has no attribute {name}"
        raise AttributeError(msg)

    from importlib import import_module

    module_map = {
        "BackupHistory": "sqlfleet.models.backup_history",
        "DbIndex": "sqlfleet.models.database_objects",
        "DbStoredProcedure": "sqlfleet.models.database_objects",
        "DbTable": "sqlfleet.models.database_objects",
        "DbUser": "sqlfleet.models.database_objects",
        "SqlDatabase": "sqlfleet.models.instance_database",
        "SqlInstance": "sqlfleet.models.instance",
        "SqlInstanceLogin": "sqlfleet.models.instance_login",
    }

    module = import_module(module_map[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
