"""
Broker connection with bounded startup retry.

Waits for RabbitMQ with a fixed interval between attempts. Exhausting the
attempts is fatal for the owning process.

Dependencies: kombu, docflow.core.exceptions
System role: Startup dependency wait for the message broker
"""

import logging

from kombu import Connection
from kombu.exceptions import OperationalError

from docflow.core.exceptions import BrokerUnavailableError

logger = logging.getLogger(__name__)


def connect_with_retry(url: str, max_retries: int, wait_seconds: float) -> Connection:
    """
    Open a broker connection, retrying with fixed backoff.

    Args:
        url: AMQP URL
        max_retries: Attempts before giving up
        wait_seconds: Fixed wait between attempts

    Returns:
        Connection: Established kombu connection

    Raises:
        BrokerUnavailableError: Broker unreachable after all attempts
    """
    connection = Connection(url)
    attempt = 0

    def _on_error(exc: Exception, interval: float) -> None:
        nonlocal attempt
        attempt += 1
        logger.warning(
            "%s:connect_with_retry - RabbitMQ unavailable (%d/%d), retrying in %.1fs: %s",
            __name__,
            attempt,
            max_retries,
            interval,
            exc,
        )

    try:
        connection.ensure_connection(
            errback=_on_error,
            max_retries=max_retries,
            interval_start=wait_seconds,
            interval_step=0,
            interval_max=wait_seconds,
        )
    except (OperationalError, *connection.connection_errors) as e:
        connection.release()
        raise BrokerUnavailableError(
            "Could not connect to RabbitMQ",
            details={"attempts": max_retries, "error": str(e)},
        ) from e

    logger.info("%s:connect_with_retry - Connected to RabbitMQ", __name__)
    return connection
