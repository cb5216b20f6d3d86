"""Dependency injection for API routes."""

from .dependencies import get_broker, get_job_service

__all__ = ["get_broker", "get_job_service"]
