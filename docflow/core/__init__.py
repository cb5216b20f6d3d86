"""
Core domain layer: job state machine, exceptions and failure classification.
"""

from docflow.core.error_classifier import error_text, is_transient
from docflow.core.job_state import (
    NEXT_STAGE,
    STAGE_PROGRESS,
    TERMINAL_STATUSES,
    JobStage,
    JobStatus,
    is_valid_transition,
    validate_transition,
)

__all__ = [
    "NEXT_STAGE",
    "STAGE_PROGRESS",
    "TERMINAL_STATUSES",
    "JobStage",
    "JobStatus",
    "error_text",
    "is_transient",
    "is_valid_transition",
    "validate_transition",
]
