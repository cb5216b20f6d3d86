"""
AWS collaborator configuration.

Settings for the Textract and Comprehend clients used by the OCR and
NLP stages.

Dependencies: pydantic_settings
System role: Cloud service client configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AWSSettings(BaseSettings):
    """Settings for AWS text extraction and analysis."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    aws_region: str = Field(
        default="us-east-1",
        description="AWS region for Textract and Comprehend",
    )
    textract_s3_bucket: str | None = Field(
        default=None,
        description="S3 bucket holding documents for asynchronous text detection",
    )
