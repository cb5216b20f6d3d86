"""
Job CRUD operations.

Provides Create, Read, Update operations for JobModel with job-specific
methods for result merging, retry accounting and status statistics.

Dependencies: sqlalchemy, docflow.boundary.db.models.job_model
System role: Job persistence operations for the stage pipeline
"""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.base import utcnow
from docflow.boundary.db.CRUD.base_crud import BaseCRUD
from docflow.boundary.db.models.job_model import JobModel
from docflow.core.exceptions import JobNotFoundError


def merge_namespaced(current: dict | None, partial: dict | None) -> dict:
    """
    Merge a stage's output into an accumulated map.

    Keys in ``partial`` overwrite the same keys in ``current``; all other keys
    are kept. Merging the same partial twice yields the same map.

    Args:
        current: Existing map (None treated as empty)
        partial: Keys written by one stage

    Returns:
        dict: New merged map; inputs are not mutated
    """
    merged = dict(current or {})
    merged.update(partial or {})
    return merged


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Extends BaseCRUD with read-modify-write merging of the result/meta maps
    and atomic attempt counting. Callers commit.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    async def get_fresh(self, session: AsyncSession, id: UUID) -> JobModel:
        """
        Load a job, bypassing any stale identity-map copy.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            JobModel: Current row state

        Raises:
            JobNotFoundError: No row with this id
        """
        stmt = (
            select(JobModel)
            .where(JobModel.id == id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        job = result.scalar_one_or_none()
        if job is None:
            raise JobNotFoundError(str(id))
        return job

    async def update_fields(
        self,
        session: AsyncSession,
        id: UUID,
        **fields: Any,
    ) -> JobModel:
        """
        Update a partial field set; updated_at is always stamped.

        Args:
            session: Async database session
            id: Job UUID
            **fields: Columns to set

        Returns:
            JobModel: Updated row

        Raises:
            JobNotFoundError: No row with this id
        """
        job = await self.update_by_id(session, id, **fields)
        if job is None:
            raise JobNotFoundError(str(id))
        return job

    async def merge_result(
        self,
        session: AsyncSession,
        id: UUID,
        partial_result: dict,
        partial_meta: dict | None = None,
        **fields: Any,
    ) -> JobModel:
        """
        Merge stage output into result (and meta) and update other fields.

        Read-then-write inside the caller's transaction. Assumes a single
        writer per job at a time.

        Args:
            session: Async database session
            id: Job UUID
            partial_result: Stage-owned keys to merge into result
            partial_meta: Keys to merge into meta
            **fields: Other columns to set in the same statement

        Returns:
            JobModel: Updated row

        Raises:
            JobNotFoundError: No row with this id
        """
        job = await self.get_fresh(session, id)
        values = dict(fields)
        values["result"] = merge_namespaced(job.result, partial_result)
        if partial_meta:
            values["meta"] = merge_namespaced(job.meta, partial_meta)
        return await self.update_fields(session, id, **values)

    async def increment_attempt_count(self, session: AsyncSession, id: UUID) -> int:
        """
        Atomically add one to attempt_count.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            int: Attempt count after the increment

        Raises:
            JobNotFoundError: No row with this id
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .values(attempt_count=JobModel.attempt_count + 1, updated_at=utcnow())
            .returning(JobModel.attempt_count)
        )
        result = await session.execute(stmt)
        attempts = result.scalar_one_or_none()
        if attempts is None:
            raise JobNotFoundError(str(id))
        return attempts

    async def count_by_status_and_stage(self, session: AsyncSession) -> list[dict]:
        """
        Count jobs grouped by (status, stage).

        Args:
            session: Async database session

        Returns:
            list[dict]: Rows of {"status", "stage", "total"} ordered by status, stage
        """
        stmt = (
            select(JobModel.status, JobModel.stage, func.count().label("total"))
            .group_by(JobModel.status, JobModel.stage)
            .order_by(JobModel.status, JobModel.stage)
        )
        result = await session.execute(stmt)
        return [
            {"status": status.value, "stage": stage.value, "total": total}
            for status, stage, total in result.all()
        ]


job_crud = JobCRUD()
