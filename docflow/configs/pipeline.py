"""
Pipeline configuration settings.

Retry policy, per-stage prefetch limits, OCR polling bounds and the
offline (mock AWS) switch.

Dependencies: pydantic, pydantic_settings
System role: Stage worker behaviour configuration
"""

from typing import Literal

from pydantic import Field

from docflow.configs.base import BaseSettings


class PipelineSettings(BaseSettings):
    """Stage worker settings. Variables are read without a prefix (JOB_MAX_RETRIES, MOCK_AWS, ...)."""

    job_max_retries: int = Field(
        default=3,
        ge=0,
        description="Transient failures tolerated before a job is failed",
    )
    job_retry_scope: Literal["stage", "job"] = Field(
        default="stage",
        description="'stage' gives every stage its own JOB_MAX_RETRIES budget "
        "(meta.stageAttempts); 'job' spends one budget over the job lifetime "
        "(attempt_count)",
    )

    ingest_prefetch: int = Field(default=5, ge=1, description="Ingest worker prefetch limit")
    ocr_prefetch: int = Field(default=3, ge=1, description="OCR worker prefetch limit")
    nlp_prefetch: int = Field(default=5, ge=1, description="NLP worker prefetch limit")

    ocr_poll_interval: float = Field(
        default=4.0,
        ge=0,
        description="Seconds between text-detection status polls",
    )
    ocr_max_poll_attempts: int = Field(
        default=60,
        ge=1,
        description="Status polls before the OCR stage gives up",
    )

    mock_aws: bool = Field(
        default=False,
        description="Serve OCR/NLP from offline fixtures instead of AWS",
    )

    def prefetch_for(self, stage: str) -> int:
        """
        Get the prefetch limit for a stage.

        Args:
            stage: Stage name (ingest, ocr, nlp)

        Returns:
            int: Prefetch count for that stage's consumer
        """
        return {
            "ingest": self.ingest_prefetch,
            "ocr": self.ocr_prefetch,
            "nlp": self.nlp_prefetch,
        }[stage]
