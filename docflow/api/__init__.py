"""HTTP layer: job submission, polling and health endpoints."""
