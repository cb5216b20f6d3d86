"""
Stage worker base class.

Implements the delivery lifecycle shared by the ingest, OCR and NLP workers:
parse, load the job, skip terminal or already-advanced jobs, mark the stage
as started, run the stage, persist its output, publish to the next queue and
only then acknowledge. Failures are classified as transient (redeliver while
the retry budget lasts) or fatal (fail the job and dead-letter the message).

Every store write completes before the message is acked or nacked.

Dependencies: docflow.core, docflow.boundary.broker, docflow.models
System role: Retry/ack policy for all stage workers
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID

from docflow.boundary.broker.rabbitmq_broker import Delivery, RabbitMQBroker
from docflow.boundary.db.models.job_model import JobModel
from docflow.configs.pipeline import PipelineSettings
from docflow.core.error_classifier import error_text, is_transient
from docflow.core.exceptions import (
    InvalidTransitionError,
    JobNotFoundError,
    MessageParseError,
)
from docflow.core.job_state import NEXT_STAGE, STAGE_PROGRESS, JobStage, JobStatus
from docflow.core.job_tracker import JobTracker, retries_used
from docflow.models.messages import StageMessage, parse_stage_message
from docflow.observability.correlation import correlation_scope

logger = logging.getLogger(__name__)


@dataclass
class StageOutcome:
    """What a stage produced: result keys, meta keys and the payload to forward."""

    result: dict[str, Any]
    meta: dict[str, Any] | None = None
    forward_payload: dict[str, Any] | None = None


class StageWorker(ABC):
    """
    Consumes one stage queue and drives jobs through that stage.

    Subclasses set ``stage`` and implement ``process``. Store coroutines run
    on one event loop owned by the worker; broker callbacks are synchronous
    and bridge into it.
    """

    stage: ClassVar[JobStage]

    def __init__(
        self,
        broker: RabbitMQBroker,
        tracker: JobTracker,
        settings: PipelineSettings,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize stage worker.

        Args:
            broker: Broker handle (consumed queue and next-stage producer)
            tracker: Job state writer
            settings: Retry policy, prefetch and mode switches
            loop: Event loop for store coroutines (created on start if None)
        """
        self.broker = broker
        self.tracker = tracker
        self.settings = settings
        self._loop = loop

    @property
    def queue(self) -> str:
        return self.broker.topology.queue_for(self.stage)

    @property
    def next_stage(self) -> JobStage:
        return NEXT_STAGE[self.stage]

    @abstractmethod
    async def process(self, job: JobModel) -> StageOutcome:
        """
        Run this stage's domain work on a freshly loaded job.

        Raises:
            Exception: Any failure; the base class classifies it
        """

    def use_mock_aws(self, job: JobModel) -> bool:
        """Offline mode: a boolean payload ``useMockAws`` overrides the setting."""
        flag = (job.payload or {}).get("useMockAws")
        if isinstance(flag, bool):
            return flag
        return self.settings.mock_aws

    def start(self) -> None:
        """Consume this stage's queue until stop() is called."""
        owns_loop = self._loop is None
        if owns_loop:
            self._loop = asyncio.new_event_loop()
        self.broker.ensure_connected()
        self.broker.consume(
            self.queue,
            self._on_delivery,
            prefetch=self.settings.prefetch_for(self.stage.value),
        )
        logger.info(
            "%s:start - Worker started",
            __name__,
            extra={"stage": self.stage.value, "queue": self.queue},
        )
        try:
            self.broker.run_forever()
        finally:
            self.broker.close()
            if owns_loop:
                self._loop.close()
                self._loop = None
            logger.info("%s:start - Worker stopped", __name__, extra={"stage": self.stage.value})

    def stop(self) -> None:
        """Stop consuming after the delivery in flight."""
        self.broker.stop()

    def _on_delivery(self, delivery: Delivery) -> None:
        self._loop.run_until_complete(self.handle(delivery))

    async def handle(self, delivery: Delivery) -> None:
        """
        Handle one delivery and ack or nack it.

        Args:
            delivery: Message checked out from this stage's queue
        """
        try:
            message = parse_stage_message(delivery.body)
            job_id = _parse_job_id(message.job_id)
        except MessageParseError as e:
            with correlation_scope(delivery.correlation_id):
                logger.error(
                    "%s:handle - Unparseable message, dead-lettering",
                    __name__,
                    extra={"queue": delivery.queue, "error": e.message},
                )
            delivery.nack(requeue=False)
            return

        with correlation_scope(delivery.correlation_id or message.job_id):
            try:
                await self._run_stage(job_id, message, delivery)
            except Exception as e:
                await self._handle_failure(job_id, delivery, e)

    async def _run_stage(self, job_id: UUID, message: StageMessage, delivery: Delivery) -> None:
        job = await self.tracker.get_job(job_id)

        if job.status.is_terminal:
            logger.info(
                "%s:handle - Job already terminal, skipping",
                __name__,
                extra={"job_id": str(job_id), "status": job.status.value},
            )
            self._ack(delivery, job_id)
            return
        if job.stage.is_after(self.stage):
            logger.info(
                "%s:handle - Duplicate delivery, job already past stage",
                __name__,
                extra={"job_id": str(job_id), "job_stage": job.stage.value},
            )
            self._ack(delivery, job_id)
            return

        start_progress, done_progress = STAGE_PROGRESS[self.stage]
        await self.tracker.mark_processing(job_id, self.stage, start_progress)
        job = await self.tracker.get_job(job_id)

        logger.info(
            "%s:handle - Processing stage",
            __name__,
            extra={
                "job_id": str(job_id),
                "stage": self.stage.value,
                "attempts": job.attempt_count,
                "redelivered": delivery.redelivered,
            },
        )
        outcome = await self.process(job)

        if self.next_stage is JobStage.COMPLETED:
            status, stage = JobStatus.DONE, JobStage.COMPLETED
        else:
            status, stage = JobStatus.PROCESSING, self.stage
        await self.tracker.advance(
            job_id, status, stage, done_progress, outcome.result, outcome.meta
        )

        next_message = StageMessage(
            job_id=str(job_id),
            type=message.type,
            stage=self.next_stage.value,
            payload=outcome.forward_payload,
        )
        self.broker.publish(
            self.broker.topology.queue_for(self.next_stage),
            next_message.to_body(),
            correlation_id=str(job_id),
        )
        self._ack(delivery, job_id)
        logger.info(
            "%s:handle - Stage complete",
            __name__,
            extra={"job_id": str(job_id), "stage": self.stage.value, "next": self.next_stage.value},
        )

    def _ack(self, delivery: Delivery, job_id: UUID) -> None:
        """
        Acknowledge after the store write (and publish) have completed.

        An ack error leaves the message unacknowledged; the broker redelivers
        it when the channel closes and the duplicate check skips or re-runs
        the stage. It never reaches the failure path.
        """
        try:
            delivery.ack()
        except Exception:
            logger.exception(
                "%s:handle - Ack failed, leaving message for redelivery",
                __name__,
                extra={"job_id": str(job_id), "stage": self.stage.value},
            )

    async def _handle_failure(self, job_id: UUID, delivery: Delivery, exc: Exception) -> None:
        if isinstance(exc, JobNotFoundError):
            logger.error(
                "%s:handle - Job not found, dead-lettering",
                __name__,
                extra={"job_id": str(job_id)},
            )
            delivery.nack(requeue=False)
            return

        transient = is_transient(exc)
        logger.warning(
            "%s:handle - Stage failed: %s",
            __name__,
            exc,
            extra={"job_id": str(job_id), "stage": self.stage.value, "transient": transient},
        )

        try:
            job = await self.tracker.get_job(job_id)
            if job.status.is_terminal:
                delivery.ack()
                return
            used = retries_used(job, self.stage, self.settings.job_retry_scope)
            if transient and used < self.settings.job_max_retries:
                attempts = await self.tracker.record_retry(job_id, self.stage)
                logger.info(
                    "%s:handle - Requeueing for retry",
                    __name__,
                    extra={"job_id": str(job_id), "attempts": attempts},
                )
                delivery.nack(requeue=True)
                return
            await self.tracker.mark_failed(
                job_id, self.stage, error_text(exc, f"{self.stage.value} stage failed")
            )
        except (InvalidTransitionError, JobNotFoundError) as e:
            logger.error(
                "%s:handle - Cannot record failure for job, dead-lettering",
                __name__,
                extra={"job_id": str(job_id), "error": e.message},
            )
            delivery.nack(requeue=False)
            return
        except Exception:
            logger.exception(
                "%s:handle - Could not record failure, requeueing",
                __name__,
                extra={"job_id": str(job_id)},
            )
            delivery.nack(requeue=True)
            return

        logger.error(
            "%s:handle - Job failed",
            __name__,
            extra={"job_id": str(job_id), "stage": self.stage.value},
        )
        delivery.nack(requeue=False)


def _parse_job_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as e:
        raise MessageParseError(f"jobId is not a UUID: {raw}") from e
