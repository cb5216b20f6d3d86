"""
Test suite for transient/fatal failure classification.

System role: Verification of the retry policy's classifier
"""

import errno

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError
from kombu.exceptions import OperationalError
from sqlalchemy.exc import DBAPIError

from docflow.core.error_classifier import error_text, is_transient
from docflow.core.exceptions import (
    EmptyTextError,
    ExtractionTimeoutError,
    PayloadValidationError,
)


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "DetectSentiment")


class TestIsTransient:
    """Test is_transient."""

    @pytest.mark.parametrize(
        "exc",
        [
            TimeoutError("read"),
            ConnectionResetError("reset by peer"),
            ConnectionRefusedError("refused"),
            EndpointConnectionError(endpoint_url="https://textract.us-east-1.amazonaws.com"),
            ReadTimeoutError(endpoint_url="https://comprehend.us-east-1.amazonaws.com"),
            client_error("ThrottlingException"),
            client_error("ServiceUnavailable"),
            OSError(errno.ECONNRESET, "connection reset"),
            OperationalError("[Errno 111] Connection refused"),
            RuntimeError("Service temporarily unavailable"),
            RuntimeError("operation timed out"),
        ],
    )
    def test_is_transient_should_accept_transient_signatures(self, exc) -> None:
        assert is_transient(exc) is True

    @pytest.mark.parametrize(
        "exc",
        [
            ValueError("bad input"),
            KeyError("text"),
            client_error("AccessDeniedException"),
            client_error("TextSizeLimitExceededException"),
            PayloadValidationError("Provide 'text' or 's3Key' in payload", field="text"),
            EmptyTextError("No text available for analysis"),
        ],
    )
    def test_is_transient_should_reject_fatal_errors(self, exc) -> None:
        assert is_transient(exc) is False

    def test_is_transient_should_treat_domain_errors_as_fatal_even_with_timeout_text(self) -> None:
        assert is_transient(ExtractionTimeoutError("Textract polling timed out")) is False

    def test_is_transient_should_accept_invalidated_db_connection(self) -> None:
        # Arrange
        exc = DBAPIError("SELECT 1", {}, Exception("server closed the connection"), connection_invalidated=True)

        # Act / Assert
        assert is_transient(exc) is True


class TestErrorText:
    """Test error_text."""

    def test_error_text_should_use_domain_message_without_details(self) -> None:
        exc = PayloadValidationError("languageCode must be 'pt' or 'en'", field="languageCode")

        assert error_text(exc, "fallback") == "languageCode must be 'pt' or 'en'"

    def test_error_text_should_fall_back_for_empty_messages(self) -> None:
        assert error_text(RuntimeError(), "nlp stage failed") == "nlp stage failed"
