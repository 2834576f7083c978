"""每用户的服务凭据 - 密码与 TOTP 密钥加密存储"""

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from otpvault.common.base import Base, TimestampMixin, UUIDMixin


class Account(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "accounts"
    __table_args__ = (
        Index("idx_accounts_owner", "owner_id"),
    )

    owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    service_name: Mapped[str] = mapped_column(String(200), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # hex(iv):hex(ciphertext)，空字符串表示未设置
    encrypted_password: Mapped[str] = mapped_column(Text, nullable=False, default="")
    encrypted_otp_secret: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<Account(id={self.id}, owner_id={self.owner_id}, service_name={self.service_name})>"
