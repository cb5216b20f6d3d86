"""
Failure classification for the stage retry policy.

Decides whether an exception raised while handling a job is transient
(worth redelivering) or fatal (fail the job and dead-letter the message).
Anything not matching a transient signature is fatal.

Dependencies: botocore, kombu, sqlalchemy, docflow.core.exceptions
System role: Retry/failure classification shared by all stage workers
"""

import errno

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
from kombu.exceptions import ConnectionError as AMQPConnectionError
from kombu.exceptions import OperationalError as BrokerOperationalError
from sqlalchemy.exc import DBAPIError

from docflow.core.exceptions import DocflowException

TRANSIENT_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "TooManyRequestsException",
        "ProvisionedThroughputExceededException",
        "RequestTimeout",
        "RequestTimeoutException",
        "ServiceUnavailable",
        "InternalServerError",
    }
)

TRANSIENT_ERRNOS = frozenset({errno.ECONNRESET, errno.ECONNREFUSED, errno.ETIMEDOUT})

TRANSIENT_MESSAGE_MARKERS = ("timeout", "timed out", "throttl", "temporar")

_TRANSIENT_TYPES = (
    TimeoutError,
    ConnectionError,
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
    AMQPConnectionError,
    BrokerOperationalError,
)


def is_transient(exc: BaseException) -> bool:
    """
    Classify an exception as transient.

    Transient: timeouts, connection reset/refused, lost broker connections,
    throttling signals from AWS, dropped database connections, or messages
    mentioning timeout/throttling/temporary unavailability. Domain
    exceptions are always fatal.

    Args:
        exc: Exception raised while handling a job

    Returns:
        bool: True when a redelivery may succeed
    """
    if isinstance(exc, DocflowException):
        return False

    if isinstance(exc, _TRANSIENT_TYPES):
        return True

    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        if code in TRANSIENT_ERROR_CODES:
            return True

    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True

    if getattr(exc, "errno", None) in TRANSIENT_ERRNOS:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS)


def error_text(exc: BaseException, fallback: str) -> str:
    """
    Get the user-facing error text for a failed job.

    Domain exceptions contribute their message without the debug details.

    Args:
        exc: Exception that failed the job
        fallback: Text used when the exception carries no message

    Returns:
        str: Text stored in the job's error_message
    """
    if isinstance(exc, DocflowException):
        return exc.message or fallback
    return str(exc) or fallback
