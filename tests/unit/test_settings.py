"""
Test suite for configuration settings.

System role: Verification of defaults and environment overrides
"""

import pytest
from pydantic import ValidationError

from docflow.configs.database import DatabaseSettings
from docflow.configs.pipeline import PipelineSettings
from docflow.configs.settings import Settings


class TestPipelineSettings:
    """Test PipelineSettings."""

    def test_defaults_should_match_pipeline_policy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("JOB_MAX_RETRIES", "JOB_RETRY_SCOPE", "MOCK_AWS", "OCR_PREFETCH"):
            monkeypatch.delenv(name, raising=False)

        settings = PipelineSettings()

        assert settings.job_max_retries == 3
        assert settings.job_retry_scope == "stage"
        assert settings.prefetch_for("ingest") == 5
        assert settings.prefetch_for("ocr") == 3
        assert settings.prefetch_for("nlp") == 5
        assert settings.ocr_poll_interval == 4.0
        assert settings.ocr_max_poll_attempts == 60
        assert settings.mock_aws is False

    def test_environment_should_override_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JOB_MAX_RETRIES", "5")
        monkeypatch.setenv("JOB_RETRY_SCOPE", "job")
        monkeypatch.setenv("MOCK_AWS", "true")

        settings = PipelineSettings()

        assert settings.job_max_retries == 5
        assert settings.job_retry_scope == "job"
        assert settings.mock_aws is True


class TestDatabaseSettings:
    """Test DatabaseSettings URLs."""

    def test_async_url_should_use_asyncpg_driver(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgres://app:secret@db:5432/jobs")

        settings = DatabaseSettings()

        assert settings.async_database_url == "postgresql+asyncpg://app:secret@db:5432/jobs"

    def test_url_should_be_built_from_parts_without_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("POSTGRES_PORT", raising=False)
        monkeypatch.setenv("POSTGRES_HOST", "pg")
        monkeypatch.setenv("POSTGRES_DB", "jobs")

        settings = DatabaseSettings()

        assert settings.async_database_url.startswith("postgresql+asyncpg://")
        assert settings.async_database_url.endswith("@pg:5432/jobs")


class TestSettings:
    """Test the aggregated Settings."""

    def test_settings_should_aggregate_sections(self) -> None:
        settings = Settings()

        assert settings.broker.job_queue_ingest
        assert settings.pipeline.job_max_retries >= 0
        assert settings.aws.aws_region

    def test_log_level_should_be_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", " debug ")

        assert Settings().log_level == "DEBUG"

    def test_unknown_log_level_should_be_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            Settings()
