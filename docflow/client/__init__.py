"""HTTP client for submitting jobs and polling them to completion."""

from docflow.client.poller import JobPoller

__all__ = ["JobPoller"]
