"""
Job state management logic.

Applies stage lifecycle writes to the job store: marking a stage as started,
advancing after success, counting transient failures and failing jobs. Every
status/stage change is validated against the state machine, and every method
commits its own transaction before returning so callers can acknowledge
queue messages only after the write is durable.

Dependencies: sqlalchemy, docflow.boundary.db, docflow.core.job_state
System role: Job tracking business logic for the stage workers
"""

import logging
from typing import Literal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docflow.boundary.db.CRUD.job_crud import JobCRUD, job_crud, merge_namespaced
from docflow.boundary.db.models.job_model import JobModel
from docflow.core.job_state import JobStage, JobStatus, validate_transition

logger = logging.getLogger(__name__)

STAGE_ATTEMPTS_KEY = "stageAttempts"


def retries_used(job: JobModel, stage: JobStage, scope: Literal["stage", "job"]) -> int:
    """Retries already spent against the budget: per stage, or over the job lifetime."""
    if scope == "job":
        return job.attempt_count or 0
    per_stage = (job.meta or {}).get(STAGE_ATTEMPTS_KEY) or {}
    return per_stage.get(stage.value, 0)


class JobTracker:
    """Job tracking business logic bound to one session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        crud: JobCRUD = job_crud,
    ) -> None:
        """
        Initialize job tracker.

        Args:
            session_factory: Factory owned by the calling process
            crud: Job CRUD implementation
        """
        self._session_factory = session_factory
        self._crud = crud

    async def get_job(self, job_id: UUID) -> JobModel:
        """
        Load the current job row.

        Raises:
            JobNotFoundError: Job does not exist
        """
        async with self._session_factory() as session:
            return await self._crud.get_fresh(session, job_id)

    async def mark_processing(self, job_id: UUID, stage: JobStage, progress: int) -> JobModel:
        """
        Mark a job as processing at a stage and clear any previous error.

        Progress never moves backwards.

        Args:
            job_id: Job UUID
            stage: Stage starting work
            progress: Stage start checkpoint

        Returns:
            JobModel: Updated row

        Raises:
            JobNotFoundError: Job does not exist
            InvalidTransitionError: Job cannot move to processing at this stage
        """
        async with self._session_factory() as session:
            job = await self._crud.get_fresh(session, job_id)
            validate_transition(job.status, job.stage, JobStatus.PROCESSING, stage)

            fields = {
                "status": JobStatus.PROCESSING,
                "stage": stage,
                "progress": max(job.progress, progress),
                "error_message": None,
            }

            updated = await self._crud.update_fields(session, job_id, **fields)
            await session.commit()
            return updated

    async def advance(
        self,
        job_id: UUID,
        status: JobStatus,
        stage: JobStage,
        progress: int,
        partial_result: dict,
        partial_meta: dict | None = None,
    ) -> JobModel:
        """
        Record a successful stage: merge its output and move the job forward.

        Args:
            job_id: Job UUID
            status: Status after the stage (processing, or done for the last stage)
            stage: Stage recorded on the row
            progress: Stage success checkpoint
            partial_result: Stage-owned result keys
            partial_meta: Meta keys to merge

        Returns:
            JobModel: Updated row

        Raises:
            JobNotFoundError: Job does not exist
            InvalidTransitionError: Transition is not allowed
        """
        async with self._session_factory() as session:
            job = await self._crud.get_fresh(session, job_id)
            validate_transition(job.status, job.stage, status, stage)

            updated = await self._crud.merge_result(
                session,
                job_id,
                partial_result,
                partial_meta,
                status=status,
                stage=stage,
                progress=max(job.progress, progress),
                error_message=None,
            )
            await session.commit()
            return updated

    async def record_retry(self, job_id: UUID, stage: JobStage) -> int:
        """
        Count one transient failure at a stage.

        attempt_count is the lifetime total and is never reset;
        meta.stageAttempts keeps the per-stage counts used by the "stage"
        retry scope.

        Args:
            job_id: Job UUID
            stage: Stage that failed

        Returns:
            int: Lifetime attempt count after the increment

        Raises:
            JobNotFoundError: Job does not exist
        """
        async with self._session_factory() as session:
            attempts = await self._crud.increment_attempt_count(session, job_id)
            job = await self._crud.get_fresh(session, job_id)
            per_stage = dict((job.meta or {}).get(STAGE_ATTEMPTS_KEY) or {})
            per_stage[stage.value] = per_stage.get(stage.value, 0) + 1
            await self._crud.update_fields(
                session,
                job_id,
                meta=merge_namespaced(job.meta, {STAGE_ATTEMPTS_KEY: per_stage}),
            )
            await session.commit()
            return attempts

    async def mark_failed(self, job_id: UUID, stage: JobStage, error_message: str) -> JobModel:
        """
        Mark a job as failed at a stage with the error text.

        A job already in a terminal state is left untouched.

        Args:
            job_id: Job UUID
            stage: Stage that gave up
            error_message: Text shown to polling clients

        Returns:
            JobModel: Row after the write (or unchanged terminal row)

        Raises:
            JobNotFoundError: Job does not exist
            InvalidTransitionError: Transition is not allowed
        """
        async with self._session_factory() as session:
            job = await self._crud.get_fresh(session, job_id)
            if job.status.is_terminal:
                logger.warning(
                    "%s:mark_failed - Job already terminal, not failing",
                    __name__,
                    extra={"job_id": str(job_id), "status": job.status.value},
                )
                return job
            validate_transition(job.status, job.stage, JobStatus.FAILED, stage)

            updated = await self._crud.update_fields(
                session,
                job_id,
                status=JobStatus.FAILED,
                stage=stage,
                error_message=error_message,
            )
            await session.commit()
            return updated
