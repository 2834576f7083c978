"""
Admin domain models - 用户与系统设置
"""

from sqlalchemy import String, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from otpvault.common.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """
    用户表
    role: user / superadmin
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email", unique=True),
    )

    # 登录邮箱
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # bcrypt 哈希
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # 角色
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class SystemSetting(Base):
    """
    系统设置表 (key-value)
    例如 registration_enabled = "true" / "false"
    """

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self):
        return f"<SystemSetting(key={self.key}, value={self.value})>"
