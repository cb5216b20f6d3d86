"""
OCR stage worker.

Resolves the job's text from, in order: inline payload text, offline
fixtures (mock mode), or an asynchronous Textract text-detection job on the
configured S3 bucket. Textract is polled with tenacity at a fixed interval
for a bounded number of attempts; boto3 calls run in a worker thread so the
event loop stays free.

Dependencies: tenacity, docflow.boundary.aws, docflow.workers.base_worker
System role: Second pipeline stage
"""

import asyncio
import logging
from typing import Any

from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from docflow.boundary.aws.textract_client import TextractClient, extract_lines
from docflow.boundary.db.models.job_model import JobModel
from docflow.configs.aws import AWSSettings
from docflow.core.exceptions import (
    ConfigurationError,
    ExtractionError,
    ExtractionTimeoutError,
    PayloadValidationError,
)
from docflow.core.job_state import JobStage
from docflow.workers.base_worker import StageOutcome, StageWorker
from docflow.workers.fixtures import mock_ocr_result

logger = logging.getLogger(__name__)

FAILED_STATUSES = ("FAILED", "PARTIAL_SUCCESS")
FINISHED_STATUSES = ("SUCCEEDED", *FAILED_STATUSES)


def inline_text_result(text: str) -> dict[str, Any]:
    """OCR result for text supplied directly in the payload."""
    line_count = len([line for line in text.splitlines() if line.strip()]) or 1
    return {
        "text": text,
        "lineCount": line_count,
        "source": "payload.text",
        "textractJobId": None,
    }


class OCRWorker(StageWorker):
    """Extracts document text for the NLP stage."""

    stage = JobStage.OCR

    def __init__(
        self,
        *args: Any,
        aws_settings: AWSSettings | None = None,
        textract: TextractClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.aws_settings = aws_settings or AWSSettings()
        self._textract = textract

    @property
    def textract(self) -> TextractClient:
        if self._textract is None:
            self._textract = TextractClient(region=self.aws_settings.aws_region)
        return self._textract

    async def process(self, job: JobModel) -> StageOutcome:
        payload = job.payload or {}
        text = payload.get("text")
        s3_key = payload.get("s3Key")

        if isinstance(text, str) and text.strip():
            ocr = inline_text_result(text)
        elif not isinstance(s3_key, str) or not s3_key.strip():
            raise PayloadValidationError("No text or s3Key to extract from", field="s3Key")
        elif self.use_mock_aws(job):
            ocr = mock_ocr_result(s3_key)
        else:
            ocr = await self.extract_from_s3(s3_key)

        logger.info(
            "%s:process - Text extracted",
            __name__,
            extra={"job_id": str(job.id), "source": ocr["source"], "lines": ocr["lineCount"]},
        )
        return StageOutcome(
            result={"ocrText": ocr["text"], "ocr": ocr},
            meta={"textractJobId": ocr["textractJobId"]},
        )

    async def extract_from_s3(self, s3_key: str) -> dict[str, Any]:
        """
        Run a Textract text-detection job on an S3 object and wait for it.

        Args:
            s3_key: Object key in the configured bucket

        Returns:
            dict: OCR result with per-line text and confidence

        Raises:
            ConfigurationError: No bucket configured
            ExtractionError: Textract reported failure or returned no JobId
            ExtractionTimeoutError: Job not finished within the poll budget
        """
        bucket = self.aws_settings.textract_s3_bucket
        if not bucket:
            raise ConfigurationError("TEXTRACT_S3_BUCKET is not configured")

        textract_job_id = await asyncio.to_thread(self.textract.start_text_detection, bucket, s3_key)
        if not textract_job_id:
            raise ExtractionError("Textract did not return a JobId", stage=self.stage.value)

        blocks = await self._wait_for_blocks(textract_job_id)
        lines = extract_lines(blocks)
        return {
            "text": "\n".join(line["text"] for line in lines),
            "lineCount": len(lines),
            "source": "textract",
            "textractJobId": textract_job_id,
            "lines": lines,
        }

    async def _wait_for_blocks(self, textract_job_id: str) -> list[dict]:
        interval = self.settings.ocr_poll_interval
        retrying = AsyncRetrying(
            retry=retry_if_result(lambda response: response.get("JobStatus") not in FINISHED_STATUSES),
            wait=wait_fixed(interval),
            stop=stop_after_attempt(self.settings.ocr_max_poll_attempts),
            before_sleep=lambda retry_state: logger.debug(
                "%s:_wait_for_blocks - Textract still running",
                __name__,
                extra={"textract_job_id": textract_job_id, "attempt": retry_state.attempt_number},
            ),
        )

        # A job is never finished right after start_text_detection returns
        await asyncio.sleep(interval)
        try:
            response = await retrying(
                asyncio.to_thread, self.textract.get_text_detection, textract_job_id
            )
        except RetryError as e:
            raise ExtractionTimeoutError(
                "Textract polling timed out",
                stage=self.stage.value,
                details={"textract_job_id": textract_job_id},
            ) from e

        status = response.get("JobStatus")
        if status in FAILED_STATUSES:
            raise ExtractionError(
                f"Textract job {status}: {response.get('StatusMessage') or 'no details'}",
                stage=self.stage.value,
                details={"textract_job_id": textract_job_id},
            )
        return await asyncio.to_thread(self._collect_pages, textract_job_id, response)

    def _collect_pages(self, textract_job_id: str, first_page: dict) -> list[dict]:
        blocks = list(first_page.get("Blocks", []))
        next_token = first_page.get("NextToken")
        while next_token:
            page = self.textract.get_text_detection(textract_job_id, next_token=next_token)
            blocks.extend(page.get("Blocks", []))
            next_token = page.get("NextToken")
        return blocks
