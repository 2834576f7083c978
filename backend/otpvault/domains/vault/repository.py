"""Account repository for database operations."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.domains.vault.models import Account


class AccountRepository:
    """Every lookup is scoped to the owning user."""

    @staticmethod
    async def create(session: AsyncSession, account: Account) -> Account:
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def list_for_owner(session: AsyncSession, owner_id: str) -> List[Account]:
        stmt = (
            select(Account)
            .where(Account.owner_id == owner_id)
            .order_by(Account.created_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_owner(session: AsyncSession, account_id: str, owner_id: str) -> Optional[Account]:
        stmt = select(Account).where(Account.id == account_id, Account.owner_id == owner_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(session: AsyncSession, account: Account) -> None:
        await session.delete(account)
        await session.flush()
