"""
配置管理 - 从环境变量加载配置
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic_settings import BaseSettings

from otpvault.common.errors import ConfigError

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_BYTES = 32
SIGNING_KEY_CONTEXT = b"otpvault/session-signing"


class Settings(BaseSettings):
    """应用配置"""

    # 应用配置
    app_name: str = "otpvault"
    app_version: str = "0.1.0"
    environment: str = "development"  # development / production
    debug: bool = False

    # 密钥配置 (64位十六进制 = 32字节)
    encryption_key: Optional[str] = None
    session_secret: Optional[str] = None

    # 数据库配置
    database_url: str = "sqlite+aiosqlite:///./otpvault.db"

    # 日志配置
    log_level: str = "INFO"
    log_dir: Optional[str] = "./logs"

    # 账户策略
    password_min_length: int = 6
    bcrypt_rounds: int = 12
    registration_enabled_default: bool = True

    # 初始超级管理员 (optional)
    superadmin_email: Optional[str] = None
    superadmin_password: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def parse_encryption_key(value: Optional[str]) -> bytes:
    """Decode the hex encryption key, raising ConfigError unless it is exactly 32 bytes."""
    if not value:
        raise ConfigError("ENCRYPTION_KEY is not set")
    try:
        key = bytes.fromhex(value.strip())
    except ValueError:
        raise ConfigError("ENCRYPTION_KEY must be hex encoded")
    if len(key) != ENCRYPTION_KEY_BYTES:
        raise ConfigError(
            f"Invalid ENCRYPTION_KEY length. Must be {ENCRYPTION_KEY_BYTES} bytes "
            f"({ENCRYPTION_KEY_BYTES * 2} hex characters), got {len(key)}"
        )
    return key


def derive_signing_key(encryption_key: bytes) -> bytes:
    """HKDF-SHA256 over the data key with a session-signing context label."""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=SIGNING_KEY_CONTEXT,
    )
    return hkdf.derive(encryption_key)


@dataclass(frozen=True)
class SecurityConfig:
    """
    Key material loaded once at start-up.

    Passed explicitly into Cipher and SessionCodec; read-only afterwards.
    """

    encryption_key: bytes
    signing_key: bytes
    secure_cookies: bool = True

    def __repr__(self) -> str:
        return f"<SecurityConfig secure_cookies={self.secure_cookies}>"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecurityConfig":
        encryption_key = parse_encryption_key(settings.encryption_key)

        if settings.session_secret:
            signing_key = settings.session_secret.encode("utf-8")
            if settings.session_secret.strip().lower() == settings.encryption_key.strip().lower():
                raise ConfigError("SESSION_SECRET must differ from ENCRYPTION_KEY")
        else:
            signing_key = derive_signing_key(encryption_key)
            logger.info("SESSION_SECRET not set, derived session signing key from ENCRYPTION_KEY")

        return cls(
            encryption_key=encryption_key,
            signing_key=signing_key,
            secure_cookies=not settings.is_development,
        )


def generate_encryption_key() -> str:
    """Return a fresh 64-hex-character key suitable for ENCRYPTION_KEY."""
    return secrets.token_hex(ENCRYPTION_KEY_BYTES)
