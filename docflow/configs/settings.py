"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the worker processes.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from docflow.configs.aws import AWSSettings
from docflow.configs.base import BaseSettings
from docflow.configs.broker import BrokerSettings
from docflow.configs.database import DatabaseSettings
from docflow.configs.pipeline import PipelineSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    broker: BrokerSettings = Field(default_factory=BrokerSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from docflow.configs import get_settings
        settings = get_settings()
    """
    return Settings()
