"""
FastAPI middleware for observability.

Binds a correlation ID to every request and logs one line per response.
Status polls and health checks are logged at DEBUG so clients waiting on a
job do not flood the INFO stream.

Dependencies: fastapi, starlette, docflow.observability.correlation
System role: Request/response observability injection
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from docflow.observability.correlation import correlation_scope

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Matched anywhere in the path; routers are mounted under a version prefix
QUIET_SEGMENTS = ("/health", "/jobs/")


def _is_quiet(method: str, path: str) -> bool:
    return method == "GET" and any(segment in path for segment in QUIET_SEGMENTS)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency for each request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                "%s:dispatch - %s %s raised",
                __name__,
                method,
                path,
                extra={
                    "method": method,
                    "path": path,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                    "error_type": type(e).__name__,
                },
            )
            raise

        level = logging.DEBUG if _is_quiet(method, path) else logging.INFO
        logger.log(
            level,
            "%s:dispatch - %s %s %d",
            __name__,
            method,
            path,
            response.status_code,
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware for correlation ID injection."""

    async def dispatch(self, request: Request, call_next):
        """
        Bind the request's correlation ID for logging and echo it back.

        A route may set its own correlation header (job creation uses the
        new job ID); otherwise the incoming or generated ID is returned.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response with correlation ID header
        """
        incoming = request.headers.get(CORRELATION_HEADER)
        with correlation_scope(incoming or str(uuid.uuid4())) as correlation_id:
            response: Response = await call_next(request)
        if CORRELATION_HEADER not in response.headers:
            response.headers[CORRELATION_HEADER] = correlation_id
        return response
