"""
Shared settings base for docflow processes.

The API and the stage workers read the same ``.env`` file and environment;
every settings group inherits the source rules and the log level from here.

Dependencies: pydantic_settings
System role: Common ancestor of the docflow settings groups
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Reads ``.env`` and the environment, ignoring keys owned by other groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for the API and workers (LOG_LEVEL)",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level
