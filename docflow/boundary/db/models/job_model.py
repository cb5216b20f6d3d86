"""
Job ORM model.

One row per unit of work driven through the ingest → ocr → nlp pipeline.
Source of truth for status, stage, progress and accumulated results; polled
by clients via GET /jobs/{id}.

Dependencies: sqlalchemy, docflow.boundary.db.base, docflow.core.job_state
System role: Job persistence for the stage workers and the polling API
"""

from sqlalchemy import JSON, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docflow.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docflow.core.job_state import JobStage, JobStatus


class JobModel(Base, UUIDMixin, TimestampMixin):
    """
    Job ORM model.

    The row is inserted once by the producer and only updated afterwards.
    Its id doubles as the correlation ID of every queue message in the
    job's lineage.

    Attributes:
        id: UUID primary key (auto-generated, immutable)
        type: Free-form pipeline variant tag ("full", "pdf", "text", ...)
        status: queued | processing | done | failed
        stage: Last stage to touch the job (ingest | ocr | nlp | completed)
        progress: Percentage complete (0-100)
        payload: Original request input (text or s3Key, languageCode, useMockAws)
        meta: Cross-stage auxiliary fields (languageCode, s3Key, textractJobId)
        result: Per-stage namespaced results; stages merge their own keys
        attempt_count: Transient failures counted against the retry budget
        error_message: Last fatal error, cleared when a stage starts
        created_at: Job creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)

    Workflow:
        1. API inserts row (queued/ingest/0) and publishes to the ingest queue
        2. Each stage worker marks processing, does its work, merges results
        3. NLP marks done/completed/100, or any stage marks failed
        4. Clients poll the row until status is done or failed
    """

    __tablename__ = "jobs"

    type: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="full",
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=JobStatus.QUEUED,
    )

    stage: Mapped[JobStage] = mapped_column(
        Enum(JobStage, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=JobStage.INGEST,
    )

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Original request input",
    )

    meta: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Auxiliary cross-stage fields",
    )

    result: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Accumulated per-stage results",
    )

    attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    def __repr__(self) -> str:
        return (
            f"<JobModel id={self.id} status={self.status} "
            f"stage={self.stage} progress={self.progress}>"
        )
