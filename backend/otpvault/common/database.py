"""
Database connection management.

One async engine per application instance. SQLite (aiosqlite) is the
default; any SQLAlchemy async URL (e.g. postgresql+asyncpg) works.
"""

from typing import AsyncIterator, Optional
import logging
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from otpvault.common.base import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the async engine and session factory for one app."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.is_sqlite = database_url.startswith("sqlite")

        engine_kwargs = {"echo": echo}
        if not self.is_sqlite:
            engine_kwargs.update({
                "pool_size": 10,
                "max_overflow": 20,
                "pool_pre_ping": True,
            })

        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self.available = False

    async def initialize(self):
        """Create tables and verify the connection. Raises if the database is unreachable."""
        # Import models so their tables are registered on Base.metadata
        from otpvault.domains.admin import models as _admin_models  # noqa: F401
        from otpvault.domains.vault import models as _vault_models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)

        self.available = True
        db_type = "SQLite" if self.is_sqlite else "PostgreSQL"
        logger.info(f"✓ {db_type} connection established")

    async def dispose(self):
        await self.engine.dispose()
        self.available = False

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Get a database session

        Usage:
            async with db.get_session() as session:
                result = await session.execute(stmt)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, committed on success."""
    db: Optional[DatabaseManager] = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database is not configured on this application")
    async with db.get_session() as session:
        yield session
