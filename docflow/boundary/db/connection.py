"""
Database connection management.

Provides async SQLAlchemy engine, session factory, and FastAPI dependency
for database session injection. Workers build one engine at process start
and dispose it at shutdown; the API does the same in its lifespan.

Dependencies: sqlalchemy, asyncpg, fastapi, docflow.configs
System role: Database connection lifecycle management
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from docflow.configs import get_settings
from docflow.configs.database import DatabaseSettings


def get_async_engine(db_config: DatabaseSettings | None = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    pool_pre_ping=True verifies connections before use to detect
    stale/broken connections early.

    Args:
        db_config: Database settings (defaults to application settings)

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails
    """
    db_config = db_config or get_settings().database
    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory bound to an engine.

    autoflush=False and expire_on_commit=False give explicit transaction
    control and keep loaded rows usable after commit.

    Args:
        engine: Engine owned by the calling process

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Sessions come from the factory the application lifespan stores on
    ``app.state.session_factory``.

    Yields:
        AsyncSession: Async SQLAlchemy session (scoped to request lifetime)

    Raises:
        RuntimeError: The application lifespan has not installed a session factory
    """
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError("Database session factory not initialised")
    async with session_factory() as session:
        yield session
