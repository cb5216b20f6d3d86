"""
Job service orchestrator.

Creates job records and hands them to the pipeline, and serves the polling
and statistics views. The job row is committed before the ingest message is
published, so a worker never receives a message for a job it cannot load.

Dependencies: docflow.boundary.db.CRUD, docflow.boundary.broker
System role: Job producer and polling read model
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.broker.rabbitmq_broker import RabbitMQBroker
from docflow.boundary.db.CRUD.job_crud import job_crud
from docflow.core.exceptions import JobNotFoundError
from docflow.core.job_state import JobStage, JobStatus
from docflow.models.job import JobCreatedResponse, JobSnapshot, JobStatsResponse, JobStatsRow
from docflow.models.messages import StageMessage

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "pt"


class JobService:
    """
    Job service orchestrator.

    Wraps JobCRUD and the broker for the HTTP layer.
    """

    def __init__(self, db: AsyncSession, broker: RabbitMQBroker | None = None) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for database operations
            broker: Broker used to enqueue new jobs (read-only use may omit it)
        """
        self.db = db
        self.broker = broker

    async def submit_job(self, job_type: str, payload: dict[str, Any]) -> JobCreatedResponse:
        """
        Create a queued job and publish it to the ingest queue.

        Payload validation is left to the ingest stage; an invalid payload
        produces a job that fails there.

        Args:
            job_type: Pipeline variant tag
            payload: Request input (text or s3Key, languageCode, useMockAws)

        Returns:
            JobCreatedResponse: {jobId, status: queued, stage: ingest, progress: 0}

        Raises:
            RuntimeError: No broker configured
            Exception: Broker publish failure (the job is marked failed first)
        """
        if self.broker is None:
            raise RuntimeError("JobService needs a broker to submit jobs")

        job = await job_crud.create(
            self.db,
            type=job_type,
            status=JobStatus.QUEUED,
            stage=JobStage.INGEST,
            progress=0,
            payload=payload,
            meta={
                "languageCode": payload.get("languageCode") or DEFAULT_LANGUAGE,
                "s3Key": payload.get("s3Key") or None,
            },
            result={},
            attempt_count=0,
        )
        await self.db.commit()

        message = StageMessage(
            job_id=str(job.id),
            type=job_type,
            stage=JobStage.INGEST.value,
            payload=payload,
        )
        try:
            self.broker.publish(
                self.broker.topology.queue_for(JobStage.INGEST),
                message.to_body(),
                correlation_id=str(job.id),
            )
        except Exception:
            logger.exception(
                "%s:submit_job - Could not enqueue job",
                __name__,
                extra={"job_id": str(job.id)},
            )
            await job_crud.update_fields(
                self.db,
                job.id,
                status=JobStatus.FAILED,
                error_message="Could not enqueue job",
            )
            await self.db.commit()
            raise

        logger.info(
            "%s:submit_job - Job queued",
            __name__,
            extra={"job_id": str(job.id), "type": job_type},
        )
        return JobCreatedResponse(
            job_id=job.id,
            status=JobStatus.QUEUED.value,
            stage=JobStage.INGEST.value,
            progress=0,
        )

    async def get_job_snapshot(self, job_id: UUID) -> JobSnapshot:
        """
        Get the job view for polling.

        Args:
            job_id: Job UUID

        Returns:
            JobSnapshot: Current job state

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = await job_crud.get_by_id(self.db, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))
        return JobSnapshot.from_job(job)

    async def get_stats(self) -> JobStatsResponse:
        """Job counts grouped by status and stage."""
        rows = await job_crud.count_by_status_and_stage(self.db)
        return JobStatsResponse(stats=[JobStatsRow(**row) for row in rows])
