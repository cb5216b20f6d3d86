"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite job store, job tracker, in-memory broker (see
tests.fakes), offline pipeline settings and a job submission helper.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docflow.application.services.job_service import JobService
from docflow.boundary.db.base import Base
from docflow.configs.pipeline import PipelineSettings
from docflow.core.job_tracker import JobTracker
from tests.fakes import FakeBroker


@pytest.fixture
async def session_factory():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        async_sessionmaker: Factory sharing one in-memory database
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_async_db(session_factory):
    """Single session on the in-memory database."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def tracker(session_factory) -> JobTracker:
    return JobTracker(session_factory)


@pytest.fixture
def fake_broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def pipeline_settings() -> PipelineSettings:
    """Offline settings with no OCR poll delay."""
    return PipelineSettings(
        mock_aws=True,
        job_max_retries=3,
        job_retry_scope="stage",
        ocr_poll_interval=0,
        ocr_max_poll_attempts=5,
    )


@pytest.fixture
def submit_job(session_factory, fake_broker):
    """Create a job through JobService and return its id."""

    async def _submit(payload: dict, job_type: str = "full"):
        async with session_factory() as session:
            created = await JobService(db=session, broker=fake_broker).submit_job(job_type, payload)
        return created.job_id

    return _submit
