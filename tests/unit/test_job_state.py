"""
Test suite for the job state machine.

System role: Verification of status/stage transition rules
"""

import pytest

from docflow.core.exceptions import InvalidTransitionError
from docflow.core.job_state import (
    NEXT_STAGE,
    STAGE_PROGRESS,
    JobStage,
    JobStatus,
    is_valid_transition,
    validate_transition,
)


class TestJobEnums:
    """Test enum helpers."""

    def test_terminal_statuses_should_be_done_and_failed(self) -> None:
        assert JobStatus.DONE.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.QUEUED.is_terminal
        assert not JobStatus.PROCESSING.is_terminal

    def test_is_after_should_follow_pipeline_order(self) -> None:
        assert JobStage.OCR.is_after(JobStage.INGEST)
        assert JobStage.COMPLETED.is_after(JobStage.NLP)
        assert not JobStage.OCR.is_after(JobStage.OCR)
        assert not JobStage.INGEST.is_after(JobStage.NLP)

    def test_progress_checkpoints_should_be_monotonic_through_pipeline(self) -> None:
        checkpoints = []
        stage = JobStage.INGEST
        while stage is not JobStage.COMPLETED:
            checkpoints.extend(STAGE_PROGRESS[stage])
            stage = NEXT_STAGE[stage]

        assert checkpoints == sorted(checkpoints)
        assert checkpoints[-1] == 100


class TestTransitions:
    """Test the transition table."""

    @pytest.mark.parametrize(
        "from_status,from_stage,to_status,to_stage",
        [
            (JobStatus.QUEUED, JobStage.INGEST, JobStatus.PROCESSING, JobStage.INGEST),
            (JobStatus.QUEUED, JobStage.INGEST, JobStatus.FAILED, JobStage.INGEST),
            (JobStatus.PROCESSING, JobStage.INGEST, JobStatus.PROCESSING, JobStage.INGEST),
            (JobStatus.PROCESSING, JobStage.INGEST, JobStatus.PROCESSING, JobStage.OCR),
            (JobStatus.PROCESSING, JobStage.OCR, JobStatus.PROCESSING, JobStage.NLP),
            (JobStatus.PROCESSING, JobStage.NLP, JobStatus.DONE, JobStage.COMPLETED),
            (JobStatus.PROCESSING, JobStage.OCR, JobStatus.FAILED, JobStage.OCR),
        ],
    )
    def test_allowed_transitions_should_validate(self, from_status, from_stage, to_status, to_stage) -> None:
        assert is_valid_transition(from_status, from_stage, to_status, to_stage)
        validate_transition(from_status, from_stage, to_status, to_stage)

    @pytest.mark.parametrize(
        "from_status,from_stage,to_status,to_stage",
        [
            (JobStatus.DONE, JobStage.COMPLETED, JobStatus.PROCESSING, JobStage.NLP),
            (JobStatus.DONE, JobStage.COMPLETED, JobStatus.FAILED, JobStage.NLP),
            (JobStatus.FAILED, JobStage.OCR, JobStatus.PROCESSING, JobStage.OCR),
            (JobStatus.QUEUED, JobStage.INGEST, JobStatus.PROCESSING, JobStage.OCR),
            (JobStatus.QUEUED, JobStage.INGEST, JobStatus.DONE, JobStage.COMPLETED),
            (JobStatus.PROCESSING, JobStage.NLP, JobStatus.PROCESSING, JobStage.OCR),
            (JobStatus.PROCESSING, JobStage.OCR, JobStatus.DONE, JobStage.OCR),
            (JobStatus.PROCESSING, JobStage.NLP, JobStatus.QUEUED, JobStage.NLP),
        ],
    )
    def test_forbidden_transitions_should_raise(self, from_status, from_stage, to_status, to_stage) -> None:
        assert not is_valid_transition(from_status, from_stage, to_status, to_stage)
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(from_status, from_stage, to_status, to_stage)

        assert exc_info.value.details["from_status"] == from_status.value
        assert exc_info.value.details["to_stage"] == to_stage.value
