"""
Database configuration.

Builds the async SQLAlchemy engine and session factory. The application
creates one engine at startup and disposes it on shutdown.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wallet_api.config.settings import Settings
from wallet_api.models.base import Base


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create async engine with a bounded connection pool.

    Args:
        settings: Application settings

    Returns:
        AsyncEngine
    """
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(
            settings.database_url, echo=settings.database_echo
        )

    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=settings.database_pool_timeout,
    )


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create async session factory bound to engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Open a session for one logical operation.

    Commits on success, rolls back on error, always releases the
    connection back to the pool.

    Yields:
        AsyncSession: Database session
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()


async def init_db(engine: AsyncEngine, create_tables: bool = False) -> None:
    """
    Verify connectivity and optionally create tables.

    Args:
        engine: Async engine
        create_tables: Create tables from metadata (development only,
            production uses Alembic migrations)
    """
    async with engine.begin() as conn:
        if create_tables:
            await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text("SELECT 1"))
    logger.info("Database initialized")


async def check_db(engine: AsyncEngine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def close_db(engine: AsyncEngine) -> None:
    """Close database connection."""
    await engine.dispose()
    logger.info("Database connection closed")
