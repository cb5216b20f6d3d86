"""
Ingest stage worker.

Validates the job payload read from the store and forwards it to the OCR
queue. Invalid payloads fail the job here, so they never reach OCR.

Dependencies: docflow.workers.base_worker
System role: First pipeline stage
"""

from typing import Any

from docflow.boundary.db.models.job_model import JobModel
from docflow.core.exceptions import PayloadValidationError
from docflow.core.job_state import JobStage
from docflow.workers.base_worker import StageOutcome, StageWorker

SUPPORTED_LANGUAGES = ("pt", "en")
DEFAULT_LANGUAGE = "pt"


def validate_payload(payload: Any) -> str:
    """
    Validate an ingest payload.

    Args:
        payload: Job payload as stored

    Returns:
        str: Resolved language code

    Raises:
        PayloadValidationError: No usable text or s3Key, or unsupported language
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError("Payload must be an object", field="payload")

    has_text = isinstance(payload.get("text"), str) and payload["text"].strip() != ""
    has_key = isinstance(payload.get("s3Key"), str) and payload["s3Key"].strip() != ""
    if not has_text and not has_key:
        raise PayloadValidationError("Provide 'text' or 's3Key' in payload", field="text")

    language = payload.get("languageCode")
    if language is None:
        return DEFAULT_LANGUAGE
    if not isinstance(language, str) or language.lower() not in SUPPORTED_LANGUAGES:
        raise PayloadValidationError(
            "languageCode must be 'pt' or 'en'", field="languageCode", details={"value": language}
        )
    return language.lower()


class IngestWorker(StageWorker):
    """Validates payloads and hands jobs to the OCR stage."""

    stage = JobStage.INGEST

    async def process(self, job: JobModel) -> StageOutcome:
        payload = job.payload or {}
        language = validate_payload(payload)
        source = "text" if isinstance(payload.get("text"), str) and payload["text"].strip() else "s3"

        return StageOutcome(
            result={"ingest": {"source": source, "languageCode": language}},
            meta={"languageCode": language},
            forward_payload=payload,
        )
