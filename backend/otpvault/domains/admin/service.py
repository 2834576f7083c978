"""
Admin domain service - 用户管理与系统设置业务逻辑
"""

import logging
from typing import Dict, List, Optional, Union

from fastapi import HTTPException, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.common.errors import ConfigError
from otpvault.common.passwords import DEFAULT_ROUNDS, check_password_length, hash_password, verify_password
from otpvault.domains.admin.models import User
from otpvault.domains.admin.repository import SettingRepository, UserRepository
from otpvault.domains.admin.schemas import UserCreate, UserUpdate
from otpvault.domains.auth.session import Role
from otpvault.domains.vault.models import Account

logger = logging.getLogger(__name__)

REGISTRATION_ENABLED_KEY = "registration_enabled"


class UserService:
    """Service for user management and password authentication."""

    def __init__(self, bcrypt_rounds: int = DEFAULT_ROUNDS, password_min_length: int = 6):
        self.repository = UserRepository()
        self.bcrypt_rounds = bcrypt_rounds
        self.password_min_length = password_min_length

    def check_password_policy(self, password: str) -> None:
        if len(password) < self.password_min_length:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be at least {self.password_min_length} characters"
            )
        try:
            check_password_length(password)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    async def create_user(
        self,
        session: AsyncSession,
        email: str,
        password: str,
        role: Union[Role, str] = Role.USER,
    ) -> User:
        """Create a new user."""
        if await self.repository.email_exists(session, email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        user = User(
            email=email,
            password_hash=hash_password(password, self.bcrypt_rounds),
            role=Role(role).value,
        )
        user = await self.repository.create(session, user)
        logger.info(f"Created user {user.id} with role {user.role}")
        return user

    async def admin_create_user(self, session: AsyncSession, data: UserCreate) -> User:
        return await self.create_user(session, data.email, data.password, data.role)

    async def authenticate(self, session: AsyncSession, email: str, password: str) -> Optional[User]:
        """Return the user when the password matches, otherwise None."""
        user = await self.repository.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def get_user(self, session: AsyncSession, user_id: str) -> User:
        user = await self.repository.get_by_id(session, user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return user

    async def list_users(self, session: AsyncSession) -> List[User]:
        return await self.repository.list_all(session)

    async def update_user(self, session: AsyncSession, user_id: str, data: UserUpdate) -> User:
        if data.email is None and not data.password and data.role is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update"
            )

        user = await self.get_user(session, user_id)
        if data.email is not None and data.email != user.email:
            if await self.repository.email_exists(session, data.email):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already exists"
                )
            user.email = data.email
        if data.password:
            user.password_hash = hash_password(data.password, self.bcrypt_rounds)
        if data.role is not None:
            # Takes effect at the user's next login; issued tokens keep their role
            user.role = data.role.value

        await session.flush()
        return user

    async def change_password(
        self,
        session: AsyncSession,
        user_id: str,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        if new_password != confirm_password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New passwords do not match"
            )
        self.check_password_policy(new_password)

        user = await self.repository.get_by_id(session, user_id)
        if user is None or not verify_password(current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        await session.flush()
        logger.info(f"Password changed for user {user_id}")

    async def delete_user(self, session: AsyncSession, user_id: str) -> None:
        """Delete a user and every vault entry they own."""
        await session.execute(delete(Account).where(Account.owner_id == user_id))
        if not await self.repository.delete(session, user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        logger.info(f"Deleted user {user_id} and their accounts")

    async def ensure_superadmin(self, session: AsyncSession, email: str, password: str) -> User:
        """Bootstrap: create the configured superadmin if that email is not registered yet."""
        user = await self.repository.get_by_email(session, email)
        if user is not None:
            return user
        try:
            check_password_length(password)
        except ValueError as e:
            raise ConfigError(f"SUPERADMIN_PASSWORD is invalid: {e}") from e
        return await self.create_user(session, email, password, Role.SUPERADMIN)


class SettingsService:
    """Key-value system settings; only registration_enabled is exposed publicly."""

    def __init__(self, registration_enabled_default: bool = True):
        self.repository = SettingRepository()
        self.registration_enabled_default = registration_enabled_default

    @staticmethod
    def _coerce(value: str) -> Union[str, bool]:
        if value == "true":
            return True
        if value == "false":
            return False
        return value

    async def get_settings(self, session: AsyncSession, include_all: bool) -> Dict[str, Union[str, bool]]:
        if include_all:
            raw = await self.repository.get_all(session)
        else:
            value = await self.repository.get(session, REGISTRATION_ENABLED_KEY)
            raw = {REGISTRATION_ENABLED_KEY: value} if value is not None else {}

        settings = {key: self._coerce(value) for key, value in raw.items()}
        settings.setdefault(REGISTRATION_ENABLED_KEY, self.registration_enabled_default)
        return settings

    async def registration_enabled(self, session: AsyncSession) -> bool:
        value = await self.repository.get(session, REGISTRATION_ENABLED_KEY)
        if value is None:
            return self.registration_enabled_default
        return value != "false"

    async def set_registration_enabled(self, session: AsyncSession, enabled: bool) -> None:
        await self.repository.set(session, REGISTRATION_ENABLED_KEY, "true" if enabled else "false")
        logger.info(f"registration_enabled set to {enabled}")
