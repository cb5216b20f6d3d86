"""ORM models."""

from docflow.boundary.db.models.job_model import JobModel

__all__ = ["JobModel"]
