"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, docflow.configs
System role: Database schema initialization

Usage:
    python -m docflow.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from docflow.boundary.db.base import Base
from docflow.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from docflow.boundary.db.models.job_model import JobModel  # noqa: F401
from docflow.observability import configure_logging

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.

    Args:
        engine: Async engine to run DDL on

    Raises:
        SQLAlchemyError: If database connection fails or table creation fails
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s:create_all_tables - Tables created", __name__)


async def _main() -> None:
    engine = get_async_engine()
    try:
        await create_all_tables(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(_main())
