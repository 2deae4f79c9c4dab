"""SQLFleet - 实例登录名模型."""

from sqlfleet import db
from sqlfleet.utils.time_utils import time_utils


class SqlInstanceLogin(db.Model):
    """实例级登录名.

    Attributes:
        id: 主键 ID.
        instance_id: 关联的实例 ID.
        login_name: 登录名.
        login_type: 类型描述(SQL_LOGIN/WINDOWS_LOGIN/WINDOWS_GROUP).
        default_database: 默认数据库.
        is_disabled: 是否禁用.
        created_date: 远端创建时间.
        updated_at: 本地写入时间.

    """

    __tablename__ = "sql_instance_logins"

    id = db.Column(db.Integer, primary_key=True)
    instance_id = db.Column(
        db.Integer,
        db.ForeignKey("sql_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    login_name = db.Column(db.String(255), nullable=False)
    login_type = db.Column(db.String(60), nullable=True)
    default_database = db.Column(db.String(255), nullable=True)
    is_disabled = db.Column(db.Boolean, nullable=False, default=False)
    created_date = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=time_utils.now, nullable=False)

    instance = db.relationship("SqlInstance", back_populates="logins")

    def __repr__(self) -> str:
        return f"<SqlInstanceLogin {self.login_name} instance={self.instance_id}>"
