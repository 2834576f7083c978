"""
Admin domain repository - 用户与设置的数据访问层
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.domains.admin.models import SystemSetting, User

logger = logging.getLogger(__name__)


class UserRepository:

    @staticmethod
    async def create(session: AsyncSession, user: User) -> User:
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_email(session: AsyncSession, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(session: AsyncSession, email: str) -> bool:
        return await UserRepository.get_by_email(session, email) is not None

    @staticmethod
    async def list_all(session: AsyncSession) -> List[User]:
        stmt = select(User).order_by(User.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete(session: AsyncSession, user_id: str) -> bool:
        result = await session.execute(delete(User).where(User.id == user_id))
        return result.rowcount > 0


class SettingRepository:

    @staticmethod
    async def get(session: AsyncSession, key: str) -> Optional[str]:
        row = await session.get(SystemSetting, key)
        return row.value if row else None

    @staticmethod
    async def get_all(session: AsyncSession) -> Dict[str, str]:
        result = await session.execute(select(SystemSetting))
        return {row.key: row.value for row in result.scalars().all()}

    @staticmethod
    async def set(session: AsyncSession, key: str, value: str) -> None:
        # Upsert
        row = await session.get(SystemSetting, key)
        if row:
            row.value = value
        else:
            session.add(SystemSetting(key=key, value=value))
        await session.flush()
