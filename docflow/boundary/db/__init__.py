"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db()
  - JobModel: Job row
  - JobCRUD, job_crud: Job persistence operations

Dependencies: sqlalchemy, docflow.configs
System role: Job store adapter
"""

from docflow.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docflow.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from docflow.boundary.db.models.job_model import JobModel
from docflow.boundary.db.CRUD import BaseCRUD, JobCRUD, job_crud

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "JobModel",
    "BaseCRUD",
    "JobCRUD",
    "job_crud",
]
