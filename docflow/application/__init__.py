"""Application layer: orchestration between the API and the job store/broker."""
