"""
Exception hierarchy for the docflow pipeline.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Domain exceptions here are never considered transient by the retry policy;
see docflow.core.error_classifier.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class DocflowException(Exception):
    """Base exception for all docflow application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class PayloadValidationError(DocflowException):
    """Raised when a job payload is malformed or incomplete."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Payload field that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class JobNotFoundError(DocflowException):
    """Raised when a referenced job row does not exist."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize job not found error.

        Args:
            job_id: ID of the missing job
            details: Additional context
        """
        details = details or {}
        details["job_id"] = job_id
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}", details)


class InvalidTransitionError(DocflowException):
    """Raised when a write would move a job along an edge the state machine forbids."""


class MessageParseError(DocflowException):
    """Raised when a queue message cannot be parsed or lacks its job ID."""


class StageProcessingError(DocflowException):
    """Base exception for failures inside a stage's domain work."""

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize stage processing error.

        Args:
            message: Error message
            stage: Stage that failed (ingest, ocr, nlp)
            details: Additional context
        """
        details = details or {}
        if stage:
            details["stage"] = stage
        super().__init__(message, details)


class ExtractionError(StageProcessingError):
    """Raised when the text-extraction service reports a terminal failure."""


class ExtractionTimeoutError(ExtractionError):
    """Raised when text extraction does not finish within the poll budget."""


class EmptyTextError(StageProcessingError):
    """Raised when no text is available for language analysis."""


class ConfigurationError(DocflowException):
    """Raised when a required setting is missing for the requested operation."""


class BrokerUnavailableError(DocflowException):
    """Raised when the message broker cannot be reached at startup."""


class PollTimeoutError(DocflowException):
    """Raised when a polled job does not reach a terminal state in time."""
