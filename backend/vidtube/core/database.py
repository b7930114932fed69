"""
Vidtube Database Layer — async SQLAlchemy engine, session factory and the
request-scoped session dependency.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vidtube.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    pass


engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    One session per request. Controllers commit explicitly; anything left
    uncommitted (including work interrupted by a timeout) is rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except BaseException:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables."""
    from vidtube.models import models  # noqa: F401  (registers mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def close_db() -> None:
    await engine.dispose()
