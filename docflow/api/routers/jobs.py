"""
Job API endpoints.

Routes: POST /jobs, GET /jobs/stats, GET /jobs/{id}

Dependencies: docflow.application.services.job_service, docflow.models
System role: Job submission and polling HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from docflow.api.deps import get_job_service
from docflow.application.services.job_service import JobService
from docflow.core.exceptions import JobNotFoundError
from docflow.models.job import (
    JobCreatedResponse,
    JobCreateRequest,
    JobSnapshot,
    JobStatsResponse,
)
from docflow.observability.middleware import CORRELATION_HEADER

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=JobCreatedResponse,
    response_model_by_alias=True,
)
async def create_job(
    request: JobCreateRequest,
    response: Response,
    job_service: JobService = Depends(get_job_service),
) -> JobCreatedResponse:
    """
    Queue a new job for the ingest -> ocr -> nlp pipeline.

    The job ID is returned in the body and as the correlation header.
    Payload problems are reported later through the job's failed status.

    Raises:
        HTTPException(503): Job could not be enqueued
    """
    try:
        created = await job_service.submit_job(request.type, request.payload)
    except Exception as e:
        raise HTTPException(status_code=503, detail="Could not enqueue job") from e
    response.headers[CORRELATION_HEADER] = str(created.job_id)
    return created


@router.get("/stats", response_model=JobStatsResponse)
async def get_job_stats(
    job_service: JobService = Depends(get_job_service),
) -> JobStatsResponse:
    """Job counts grouped by status and stage."""
    return await job_service.get_stats()


@router.get("/{job_id}", response_model=JobSnapshot)
async def get_job(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> JobSnapshot:
    """
    Get job status, stage, progress and result for polling.

    Clients poll until status is done or failed. A failed job carries
    error_message; stack traces are never exposed.

    Example Response:
        {
            "id": "123e4567-e89b-12d3-a456-426614174000",
            "type": "full",
            "status": "done",
            "stage": "completed",
            "progress": 100,
            "result": {"ocrText": "...", "nlp": {"sentiment": {...}}},
            "error_message": null,
            "attempt_count": 0
        }

    Raises:
        HTTPException(404): Job not found
    """
    try:
        return await job_service.get_job_snapshot(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
