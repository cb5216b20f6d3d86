"""
Observability module.

Provides logging configuration and correlation ID tracking.
"""

from docflow.observability.correlation import (
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from docflow.observability.logger import CorrelationIdFilter, configure_logging

__all__ = [
    "CorrelationIdFilter",
    "clear_correlation_id",
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "set_correlation_id",
]
