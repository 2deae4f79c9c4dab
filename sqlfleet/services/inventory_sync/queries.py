"""SQL Server 元数据查询语句.

仅在未传参数时执行的语句可以直接使用 ``%``;带参数的语句中字面量 ``%`` 需写作 ``%%``.
"""

from sqlfleet.constants import SYSTEM_DATABASES

_SYSTEM_DATABASE_LIST = ", ".join(f"'{name}'" for name in SYSTEM_DATABASES)

SERVER_PROPERTIES = """
    SELECT
        CAST(SERVERPROPERTY('ProductVersion') AS NVARCHAR(128)) AS product_version,
        CAST(SERVERPROPERTY('Edition') AS NVARCHAR(128)) AS edition,
        CAST(SERVERPROPERTY('ProductLevel') AS NVARCHAR(128)) AS product_level
"""

SYSTEM_INFO = """
    SELECT
        sqlserver_start_time,
        cpu_count,
        CAST(physical_memory_kb / 1024.0 / 1024.0 AS DECIMAL(18, 2)) AS total_memory_gb
    FROM sys.dm_os_sys_info
"""

USER_DATABASES = f"""
    SELECT
        d.name,
        d.state_desc,
        d.recovery_model_desc,
        (SELECT CAST(SUM(CAST(mf.size AS BIGINT)) * 8 / 1024.0 AS DECIMAL(18, 2))
           FROM sys.master_files mf WHERE mf.database_id = d.database_id) AS size_mb,
        (SELECT TOP 1 mf.physical_name
           FROM sys.master_files mf WHERE mf.database_id = d.database_id AND mf.type = 0
           ORDER BY mf.file_id) AS data_file_path,
        (SELECT CAST(SUM(CAST(mf.size AS BIGINT)) * 8 / 1024.0 AS DECIMAL(18, 2))
           FROM sys.master_files mf WHERE mf.database_id = d.database_id AND mf.type = 0) AS data_file_size_mb,
        (SELECT TOP 1 mf.physical_name
           FROM sys.master_files mf WHERE mf.database_id = d.database_id AND mf.type = 1
           ORDER BY mf.file_id) AS log_file_path,
        (SELECT CAST(SUM(CAST(mf.size AS BIGINT)) * 8 / 1024.0 AS DECIMAL(18, 2))
           FROM sys.master_files mf WHERE mf.database_id = d.database_id AND mf.type = 1) AS log_file_size_mb
    FROM sys.databases d
    WHERE d.name NOT IN ({_SYSTEM_DATABASE_LIST})
    ORDER BY d.name
"""

LAST_BACKUPS = """
    SELECT type, MAX(backup_finish_date) AS last_backup
    FROM msdb.dbo.backupset
    WHERE database_name = %s
    GROUP BY type
"""

BACKUP_HISTORY = """
    SELECT
        CASE type
            WHEN 'D' THEN 'Full'
            WHEN 'I' THEN 'Differential'
            WHEN 'L' THEN 'Log'
            ELSE type
        END AS backup_type,
        backup_start_date,
        backup_finish_date,
        CAST(backup_size / 1024.0 / 1024.0 AS DECIMAL(18, 2)) AS backup_size_mb
    FROM msdb.dbo.backupset
    WHERE database_name = %s
      AND type IN ('D', 'I', 'L')
      AND backup_finish_date >= DATEADD(day, -%s, GETDATE())
    ORDER BY backup_finish_date DESC
"""

LOGINS = """
    SELECT
        name,
        type_desc,
        default_database_name,
        is_disabled,
        create_date
    FROM sys.server_principals
    WHERE type IN ('S', 'U', 'G')
      AND name NOT LIKE '##%'
    ORDER BY name
"""

TABLES = """
    SELECT
        s.name AS schema_name,
        t.name AS table_name,
        SUM(p.rows) AS row_count,
        t.create_date
    FROM sys.tables t
    INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
    LEFT JOIN sys.partitions p ON t.object_id = p.object_id AND p.index_id IN (0, 1)
    GROUP BY s.name, t.name, t.create_date
    ORDER BY s.name, t.name
"""

INDEXES = """
    SELECT
        OBJECT_NAME(i.object_id) AS table_name,
        i.name AS index_name,
        i.type_desc,
        i.is_unique
    FROM sys.indexes i
    INNER JOIN sys.tables t ON i.object_id = t.object_id
    WHERE i.name IS NOT NULL
    ORDER BY table_name, i.name
"""

PROCEDURES = """
    SELECT
        s.name AS schema_name,
        p.name AS procedure_name,
        p.create_date
    FROM sys.procedures p
    INNER JOIN sys.schemas s ON p.schema_id = s.schema_id
    ORDER BY s.name, p.name
"""

USERS = """
    SELECT
        dp.name AS user_name,
        dp.type_desc,
        dp.default_schema_name,
        STRING_AGG(r.name, ', ') AS roles
    FROM sys.database_principals dp
    LEFT JOIN sys.database_role_members drm ON dp.principal_id = drm.member_principal_id
    LEFT JOIN sys.database_principals r ON drm.role_principal_id = r.principal_id
    WHERE dp.type IN ('S', 'U', 'G')
      AND dp.name NOT IN ('guest', 'INFORMATION_SCHEMA', 'sys')
    GROUP BY dp.name, dp.type_desc, dp.default_schema_name
    ORDER BY dp.name
"""
