"""Pydantic schemas for queue messages and the job API."""

from docflow.models.job import (
    JobCreatedResponse,
    JobCreateRequest,
    JobSnapshot,
    JobStatsResponse,
    JobStatsRow,
)
from docflow.models.messages import StageMessage, parse_stage_message

__all__ = [
    "JobCreatedResponse",
    "JobCreateRequest",
    "JobSnapshot",
    "JobStatsResponse",
    "JobStatsRow",
    "StageMessage",
    "parse_stage_message",
]
