"""
Test suite for the job HTTP API.

The service layer is replaced through dependency overrides; the lifespan
(database engine, broker connection) is not started.

System role: Verification of job submission and polling endpoints
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from docflow.api.deps import get_job_service
from docflow.api.main import create_app
from docflow.core.exceptions import JobNotFoundError
from docflow.models.job import JobCreatedResponse, JobSnapshot, JobStatsResponse, JobStatsRow


@pytest.fixture
def mock_job_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(mock_job_service) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_job_service] = lambda: mock_job_service
    return TestClient(app)


class TestCreateJob:
    """Test POST /jobs."""

    def test_create_job_should_return_201_with_job_id_header(self, client, mock_job_service) -> None:
        # Arrange
        job_id = uuid.uuid4()
        mock_job_service.submit_job.return_value = JobCreatedResponse(
            job_id=job_id, status="queued", stage="ingest", progress=0
        )

        # Act
        response = client.post(
            "/api/v1/jobs",
            json={"type": "full", "payload": {"text": "great product", "languageCode": "en"}},
        )

        # Assert
        assert response.status_code == 201
        assert response.json() == {
            "jobId": str(job_id),
            "status": "queued",
            "stage": "ingest",
            "progress": 0,
        }
        assert response.headers["X-Correlation-ID"] == str(job_id)
        mock_job_service.submit_job.assert_awaited_once_with(
            "full", {"text": "great product", "languageCode": "en"}
        )

    def test_create_job_should_default_type(self, client, mock_job_service) -> None:
        mock_job_service.submit_job.return_value = JobCreatedResponse(
            job_id=uuid.uuid4(), status="queued", stage="ingest", progress=0
        )

        response = client.post("/api/v1/jobs", json={"payload": {"s3Key": "doc.pdf"}})

        assert response.status_code == 201
        mock_job_service.submit_job.assert_awaited_once_with("full", {"s3Key": "doc.pdf"})

    def test_create_job_should_return_503_when_enqueue_fails(self, client, mock_job_service) -> None:
        mock_job_service.submit_job.side_effect = ConnectionError("broker down")

        response = client.post("/api/v1/jobs", json={"payload": {"text": "x"}})

        assert response.status_code == 503
        assert response.json()["detail"] == "Could not enqueue job"

    def test_create_job_should_reject_non_object_payload(self, client) -> None:
        response = client.post("/api/v1/jobs", json={"payload": "text"})

        assert response.status_code == 422


class TestGetJob:
    """Test GET /jobs/{id}."""

    def test_get_job_should_return_snapshot(self, client, mock_job_service) -> None:
        # Arrange
        job_id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        mock_job_service.get_job_snapshot.return_value = JobSnapshot(
            id=job_id,
            type="full",
            status="done",
            stage="completed",
            progress=100,
            result={"ocrText": "great product", "nlp": {"languageCode": "en"}},
            created_at=now,
            updated_at=now,
        )

        # Act
        response = client.get(f"/api/v1/jobs/{job_id}")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "done"
        assert data["stage"] == "completed"
        assert data["progress"] == 100
        assert data["error_message"] is None
        assert data["result"]["nlp"]["languageCode"] == "en"
        mock_job_service.get_job_snapshot.assert_awaited_once_with(job_id)

    def test_get_job_should_return_404_for_unknown_job(self, client, mock_job_service) -> None:
        job_id = uuid.uuid4()
        mock_job_service.get_job_snapshot.side_effect = JobNotFoundError(str(job_id))

        response = client.get(f"/api/v1/jobs/{job_id}")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"].lower()

    def test_get_job_should_reject_malformed_id(self, client) -> None:
        response = client.get("/api/v1/jobs/not-a-uuid")

        assert response.status_code == 422

    def test_get_job_should_echo_incoming_correlation_id(self, client, mock_job_service) -> None:
        mock_job_service.get_job_snapshot.side_effect = JobNotFoundError("x")

        response = client.get(f"/api/v1/jobs/{uuid.uuid4()}", headers={"X-Correlation-ID": "trace-1"})

        assert response.headers["X-Correlation-ID"] == "trace-1"


class TestJobStats:
    """Test GET /jobs/stats."""

    def test_stats_should_list_counts(self, client, mock_job_service) -> None:
        mock_job_service.get_stats.return_value = JobStatsResponse(
            stats=[JobStatsRow(status="done", stage="completed", total=3)]
        )

        response = client.get("/api/v1/jobs/stats")

        assert response.status_code == 200
        assert response.json() == {"stats": [{"status": "done", "stage": "completed", "total": 3}]}
