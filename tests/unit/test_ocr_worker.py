"""
Test suite for the OCR stage.

Covers text-source resolution and Textract polling with a mocked boto3
client; no store or broker involved.

System role: Verification of OCR extraction rules
"""

import threading
import uuid
from unittest.mock import MagicMock

import pytest

from docflow.boundary.aws.textract_client import TextractClient
from docflow.boundary.db.models.job_model import JobModel
from docflow.configs.aws import AWSSettings
from docflow.configs.pipeline import PipelineSettings
from docflow.core.exceptions import (
    ConfigurationError,
    ExtractionError,
    ExtractionTimeoutError,
    PayloadValidationError,
)
from docflow.workers.ocr_worker import OCRWorker, inline_text_result
from tests.fakes import FakeBroker


def line(text: str, confidence: float = 99.0) -> dict:
    return {"BlockType": "LINE", "Text": text, "Confidence": confidence}


@pytest.fixture
def boto_textract() -> MagicMock:
    client = MagicMock()
    client.start_document_text_detection.return_value = {"JobId": "tx-1"}
    return client


@pytest.fixture
def make_worker(boto_textract):
    def _make(mock_aws: bool = False, bucket: str | None = "docs-bucket", attempts: int = 3) -> OCRWorker:
        return OCRWorker(
            FakeBroker(),
            MagicMock(),
            PipelineSettings(mock_aws=mock_aws, ocr_poll_interval=0, ocr_max_poll_attempts=attempts),
            aws_settings=AWSSettings(textract_s3_bucket=bucket),
            textract=TextractClient(client=boto_textract),
        )

    return _make


def make_job(payload: dict) -> JobModel:
    return JobModel(id=uuid.uuid4(), payload=payload, meta={}, result={})


class TestInlineText:
    """Test inline payload text."""

    def test_inline_text_should_count_non_empty_lines(self) -> None:
        result = inline_text_result("first\n\nsecond\n")

        assert result["lineCount"] == 2
        assert result["source"] == "payload.text"

    def test_inline_text_should_count_at_least_one_line(self) -> None:
        assert inline_text_result("   ")["lineCount"] == 1

    async def test_process_should_prefer_payload_text_over_s3(self, make_worker, boto_textract) -> None:
        # Arrange
        worker = make_worker()
        job = make_job({"text": "great product", "s3Key": "doc.pdf"})

        # Act
        outcome = await worker.process(job)

        # Assert
        assert outcome.result["ocrText"] == "great product"
        assert outcome.result["ocr"]["source"] == "payload.text"
        assert outcome.forward_payload is None
        boto_textract.start_document_text_detection.assert_not_called()


class TestOfflineMode:
    """Test mock-AWS mode."""

    async def test_process_should_use_fixture_when_payload_requests_mock(self, make_worker, boto_textract) -> None:
        worker = make_worker(mock_aws=False)
        job = make_job({"s3Key": "docs/Teste de Usabilidade .pdf", "useMockAws": True})

        outcome = await worker.process(job)

        assert outcome.result["ocr"]["source"] == "mock:usability-pdf"
        assert outcome.result["ocr"]["lineCount"] == 17
        boto_textract.start_document_text_detection.assert_not_called()

    async def test_payload_flag_should_override_mock_setting(self, make_worker, boto_textract) -> None:
        # Arrange
        boto_textract.get_document_text_detection.return_value = {
            "JobStatus": "SUCCEEDED",
            "Blocks": [line("real text")],
        }
        worker = make_worker(mock_aws=True)
        job = make_job({"s3Key": "doc.pdf", "useMockAws": False})

        # Act
        outcome = await worker.process(job)

        # Assert
        assert outcome.result["ocr"]["source"] == "textract"
        assert outcome.meta == {"textractJobId": "tx-1"}


class TestTextractExtraction:
    """Test the Textract start/poll path."""

    async def test_process_should_collect_lines_across_pages(self, make_worker, boto_textract) -> None:
        # Arrange
        boto_textract.get_document_text_detection.side_effect = [
            {"JobStatus": "IN_PROGRESS"},
            {
                "JobStatus": "SUCCEEDED",
                "Blocks": [{"BlockType": "PAGE"}, line("Invoice 42", 98.5)],
                "NextToken": "page-2",
            },
            {"JobStatus": "SUCCEEDED", "Blocks": [line("Total: 10 EUR", 91.0), {"BlockType": "WORD", "Text": "Total"}]},
        ]
        worker = make_worker()

        # Act
        outcome = await worker.process(make_job({"s3Key": "invoices/42.pdf"}))

        # Assert
        ocr = outcome.result["ocr"]
        assert ocr["text"] == "Invoice 42\nTotal: 10 EUR"
        assert ocr["lineCount"] == 2
        assert ocr["lines"] == [
            {"text": "Invoice 42", "confidence": 98.5},
            {"text": "Total: 10 EUR", "confidence": 91.0},
        ]
        assert outcome.result["ocrText"] == ocr["text"]
        boto_textract.start_document_text_detection.assert_called_once_with(
            DocumentLocation={"S3Object": {"Bucket": "docs-bucket", "Name": "invoices/42.pdf"}}
        )
        last_call = boto_textract.get_document_text_detection.call_args
        assert last_call.kwargs == {"JobId": "tx-1", "MaxResults": 1000, "NextToken": "page-2"}

    @pytest.mark.parametrize("status", ["FAILED", "PARTIAL_SUCCESS"])
    async def test_process_should_raise_when_textract_fails(self, make_worker, boto_textract, status: str) -> None:
        boto_textract.get_document_text_detection.return_value = {
            "JobStatus": status,
            "StatusMessage": "unsupported document",
        }

        with pytest.raises(ExtractionError) as exc_info:
            await make_worker().process(make_job({"s3Key": "doc.pdf"}))

        assert status in exc_info.value.message

    async def test_process_should_time_out_after_poll_budget(self, make_worker, boto_textract) -> None:
        boto_textract.get_document_text_detection.return_value = {"JobStatus": "IN_PROGRESS"}

        with pytest.raises(ExtractionTimeoutError):
            await make_worker(attempts=3).process(make_job({"s3Key": "doc.pdf"}))

        assert boto_textract.get_document_text_detection.call_count == 3

    async def test_process_should_require_a_bucket(self, make_worker) -> None:
        with pytest.raises(ConfigurationError):
            await make_worker(bucket=None).process(make_job({"s3Key": "doc.pdf"}))

    async def test_process_should_raise_without_job_id(self, make_worker, boto_textract) -> None:
        boto_textract.start_document_text_detection.return_value = {}

        with pytest.raises(ExtractionError):
            await make_worker().process(make_job({"s3Key": "doc.pdf"}))

    async def test_process_should_reject_payload_without_source(self, make_worker) -> None:
        with pytest.raises(PayloadValidationError):
            await make_worker().process(make_job({"languageCode": "en"}))


class TestSynchronousDetection:
    """Test TextractClient.detect_document_text."""

    def test_detect_document_text_should_return_lines_with_confidence(self, boto_textract) -> None:
        boto_textract.detect_document_text.return_value = {
            "Blocks": [{"BlockType": "PAGE"}, line("hello", 97.0), {"BlockType": "LINE", "Text": ""}]
        }

        lines = TextractClient(client=boto_textract).detect_document_text(b"%PDF-1.4")

        assert lines == [{"text": "hello", "confidence": 97.0}]
        boto_textract.detect_document_text.assert_called_once_with(Document={"Bytes": b"%PDF-1.4"})


class TestEventLoopOffload:
    """Test that blocking Textract calls leave the event loop thread."""

    async def test_textract_calls_should_run_in_worker_threads(self, make_worker, boto_textract) -> None:
        # Arrange
        threads: list[int] = []

        def record(response: dict):
            def _call(**_):
                threads.append(threading.get_ident())
                return response

            return _call

        boto_textract.start_document_text_detection.side_effect = record({"JobId": "tx-1"})
        boto_textract.get_document_text_detection.side_effect = record(
            {"JobStatus": "SUCCEEDED", "Blocks": [line("hello")]}
        )

        # Act
        outcome = await make_worker().process(make_job({"s3Key": "doc.pdf"}))

        # Assert
        assert outcome.result["ocrText"] == "hello"
        assert len(threads) == 2
        assert threading.get_ident() not in threads
