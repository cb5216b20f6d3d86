"""
Job lifecycle state machine.

Status and stage are explicit enums; every worker write that changes them is
checked against the transition table below. An invalid transition is a
programming error and raises InvalidTransitionError.

    queued ──────────────► processing(ingest)
    queued ──────────────► failed
    processing(stage_i) ─► processing(stage_j)   j >= i
    processing ──────────► done                  stage must be completed
    processing ──────────► failed

done and failed are terminal.

Dependencies: docflow.core.exceptions
System role: Job status/stage transition rules
"""

import enum

from docflow.core.exceptions import InvalidTransitionError


class JobStatus(str, enum.Enum):
    """
    Job execution states.

    QUEUED: Row created, ingest message published, no worker has started
    PROCESSING: A stage worker is (or was last) working on the job
    DONE: NLP stage finished; result is complete
    FAILED: A stage gave up; error_message holds the reason
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class JobStage(str, enum.Enum):
    """Pipeline stages in execution order. COMPLETED is reached only with status DONE."""

    INGEST = "ingest"
    OCR = "ocr"
    NLP = "nlp"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        return _STAGE_ORDER[self]

    def is_after(self, other: "JobStage") -> bool:
        """Return True when this stage comes strictly later than ``other``."""
        return self.order > other.order


_STAGE_ORDER = {
    JobStage.INGEST: 0,
    JobStage.OCR: 1,
    JobStage.NLP: 2,
    JobStage.COMPLETED: 3,
}

TERMINAL_STATUSES = frozenset({JobStatus.DONE, JobStatus.FAILED})

# Progress checkpoints per stage: (on start, on success)
STAGE_PROGRESS = {
    JobStage.INGEST: (10, 10),
    JobStage.OCR: (35, 60),
    JobStage.NLP: (75, 100),
}

# Stage that consumes the output of each stage
NEXT_STAGE = {
    JobStage.INGEST: JobStage.OCR,
    JobStage.OCR: JobStage.NLP,
    JobStage.NLP: JobStage.COMPLETED,
}


def is_valid_transition(
    from_status: JobStatus,
    from_stage: JobStage,
    to_status: JobStatus,
    to_stage: JobStage,
) -> bool:
    """
    Check a status/stage change against the transition table.

    Args:
        from_status: Current job status
        from_stage: Current job stage
        to_status: Requested job status
        to_stage: Requested job stage

    Returns:
        bool: True when the transition is allowed
    """
    if from_status in TERMINAL_STATUSES:
        return False

    if from_status == JobStatus.QUEUED:
        if to_status == JobStatus.PROCESSING:
            return to_stage == JobStage.INGEST
        if to_status == JobStatus.FAILED:
            return to_stage == JobStage.INGEST
        return False

    # from_status is PROCESSING
    if to_status == JobStatus.PROCESSING:
        return to_stage != JobStage.COMPLETED and not from_stage.is_after(to_stage)
    if to_status == JobStatus.DONE:
        return to_stage == JobStage.COMPLETED
    if to_status == JobStatus.FAILED:
        return to_stage != JobStage.COMPLETED and not from_stage.is_after(to_stage)
    return False


def validate_transition(
    from_status: JobStatus,
    from_stage: JobStage,
    to_status: JobStatus,
    to_stage: JobStage,
) -> None:
    """
    Raise when a status/stage change is not allowed.

    Raises:
        InvalidTransitionError: Transition is not in the table
    """
    if not is_valid_transition(from_status, from_stage, to_status, to_stage):
        raise InvalidTransitionError(
            f"Invalid job transition {from_status.value}({from_stage.value}) "
            f"-> {to_status.value}({to_stage.value})",
            details={
                "from_status": from_status.value,
                "from_stage": from_stage.value,
                "to_status": to_status.value,
                "to_stage": to_stage.value,
            },
        )
