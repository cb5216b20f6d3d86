"""
Job domain models and schemas.

Request/response schemas for job creation and polling.

Dependencies: pydantic, docflow.core.job_state
System role: Job API contracts
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docflow.core.job_state import JobStatus


class JobCreateRequest(BaseModel):
    """Request body for POST /jobs. The payload is validated by the ingest stage."""

    type: str = Field(default="full", description="Pipeline variant tag")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="text or s3Key, optional languageCode and useMockAws",
    )


class JobCreatedResponse(BaseModel):
    """Response for a newly queued job."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: uuid.UUID = Field(alias="jobId")
    status: str
    stage: str
    progress: int


class JobSnapshot(BaseModel):
    """Read-only job view returned to polling clients."""

    id: uuid.UUID
    type: str
    status: str
    stage: str
    progress: int
    result: dict[str, Any]
    error_message: str | None = None
    attempt_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_job(cls, job: Any) -> "JobSnapshot":
        """Build a snapshot from a job row, flattening enum columns to their values."""
        return cls(
            id=job.id,
            type=job.type,
            status=getattr(job.status, "value", job.status),
            stage=getattr(job.stage, "value", job.stage),
            progress=job.progress,
            result=job.result or {},
            error_message=job.error_message,
            attempt_count=job.attempt_count or 0,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )

    @property
    def is_terminal(self) -> bool:
        return JobStatus(self.status).is_terminal


class JobStatsRow(BaseModel):
    """Job count for one (status, stage) pair."""

    status: str
    stage: str
    total: int


class JobStatsResponse(BaseModel):
    """Response for GET /jobs/stats."""

    stats: list[JobStatsRow]
