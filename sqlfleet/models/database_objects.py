"""SQLFleet - 数据库内结构对象模型.

表、索引、存储过程与数据库用户均归属于单个 SqlDatabase,
每次数据库采集按集合整体替换.
"""

from sqlfleet import db
from sqlfleet.utils.time_utils import time_utils


def _database_fk() -> db.Column:
    return db.Column(
        db.Integer,
        db.ForeignKey("sql_databases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class DbTable(db.Model):
    """用户表及其行数."""

    __tablename__ = "db_tables"

    id = db.Column(db.Integer, primary_key=True)
    database_id = _database_fk()
    schema_name = db.Column(db.String(255), nullable=True)
    table_name = db.Column(db.String(255), nullable=False)
    row_count = db.Column(db.BigInteger, nullable=True)
    created_date = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    database = db.relationship("SqlDatabase", back_populates="tables")

    def __repr__(self) -> str:
        return f"<DbTable {self.schema_name}.{self.table_name}>"


class DbIndex(db.Model):
    """具名索引."""

    __tablename__ = "db_indexes"

    id = db.Column(db.Integer, primary_key=True)
    database_id = _database_fk()
    table_name = db.Column(db.String(255), nullable=True)
    index_name = db.Column(db.String(255), nullable=False)
    index_type = db.Column(db.String(60), nullable=True)
    is_unique = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    database = db.relationship("SqlDatabase", back_populates="indexes")

    def __repr__(self) -> str:
        return f"<DbIndex {self.table_name}.{self.index_name}>"


class DbStoredProcedure(db.Model):
    """存储过程."""

    __tablename__ = "db_stored_procedures"

    id = db.Column(db.Integer, primary_key=True)
    database_id = _database_fk()
    schema_name = db.Column(db.String(255), nullable=True)
    procedure_name = db.Column(db.String(255), nullable=False)
    created_date = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    database = db.relationship("SqlDatabase", back_populates="stored_procedures")

    def __repr__(self) -> str:
        return f"<DbStoredProcedure {self.schema_name}.{self.procedure_name}>"


class DbUser(db.Model):
    """数据库用户及其角色列表."""

    __tablename__ = "db_users"

    id = db.Column(db.Integer, primary_key=True)
    database_id = _database_fk()
    user_name = db.Column(db.String(255), nullable=False)
    user_type = db.Column(db.String(60), nullable=True)
    default_schema = db.Column(db.String(255), nullable=True)
    # 逗号分隔的角色名
    roles = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    database = db.relationship("SqlDatabase", back_populates="users")

    def __repr__(self) -> str:
        return f"<DbUser {self.user_name}>"
