"""Async engine and session factory."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from core import settings

async_engine: AsyncEngine = create_async_engine(settings.database_url)
AsyncSessionMaker = async_sessionmaker(async_engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session for the duration of one unit of work."""
    async with AsyncSessionMaker() as session:
        yield session


async def init_models(engine: AsyncEngine | None = None) -> None:
    """Create every table registered on the SQLModel metadata."""
    import models  # noqa: F401  register tables

    async with (engine or async_engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
