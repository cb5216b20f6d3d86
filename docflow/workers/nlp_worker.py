"""
NLP stage worker.

Runs sentiment and entity detection on the OCR text and completes the job.
Comprehend calls run in a worker thread off the event loop.

Dependencies: docflow.boundary.aws, docflow.workers.base_worker
System role: Final pipeline stage
"""

import asyncio
import logging
from typing import Any

from docflow.boundary.aws.comprehend_client import ComprehendClient
from docflow.boundary.db.models.job_model import JobModel
from docflow.configs.aws import AWSSettings
from docflow.core.exceptions import EmptyTextError
from docflow.core.job_state import JobStage
from docflow.workers.base_worker import StageOutcome, StageWorker
from docflow.workers.fixtures import mock_analysis

logger = logging.getLogger(__name__)


def normalize_language(value: Any) -> str:
    """Map a language hint to a Comprehend code: pt*, en*, otherwise en. Missing is pt."""
    if not value:
        return "pt"
    code = str(value).lower()
    if code.startswith("pt"):
        return "pt"
    return "en"


def resolve_text(job: JobModel) -> str:
    """Pick the text to analyse: OCR text, then OCR result text, then payload text."""
    result = job.result or {}
    ocr = result.get("ocr") if isinstance(result.get("ocr"), dict) else {}
    for candidate in (result.get("ocrText"), ocr.get("text"), (job.payload or {}).get("text")):
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return ""


class NLPWorker(StageWorker):
    """Analyses extracted text and marks the job done."""

    stage = JobStage.NLP

    def __init__(
        self,
        *args: Any,
        aws_settings: AWSSettings | None = None,
        comprehend: ComprehendClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.aws_settings = aws_settings or AWSSettings()
        self._comprehend = comprehend

    @property
    def comprehend(self) -> ComprehendClient:
        if self._comprehend is None:
            self._comprehend = ComprehendClient(region=self.aws_settings.aws_region)
        return self._comprehend

    async def process(self, job: JobModel) -> StageOutcome:
        text = resolve_text(job)
        if not text:
            raise EmptyTextError("No text available for analysis", stage=self.stage.value)

        meta = job.meta or {}
        language = normalize_language(
            meta.get("languageCode") or (job.payload or {}).get("languageCode")
        )

        if self.use_mock_aws(job):
            analysis = mock_analysis(text)
        else:
            analysis = {
                "sentiment": await asyncio.to_thread(self.comprehend.detect_sentiment, text, language),
                "entities": await asyncio.to_thread(self.comprehend.detect_entities, text, language),
            }

        logger.info(
            "%s:process - Text analysed",
            __name__,
            extra={
                "job_id": str(job.id),
                "sentiment": analysis["sentiment"].get("Sentiment"),
                "entities": len(analysis["entities"]),
            },
        )
        return StageOutcome(result={"nlp": {**analysis, "languageCode": language}})
