"""
Stage queue message schema.

Every message carries the job ID (also used as the transport correlation
ID), the job type, the stage the message is addressed to and, for the
ingest and ocr queues, the original payload.

Dependencies: pydantic
System role: Data validation and contract definition for queue messages
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docflow.core.exceptions import MessageParseError


class StageMessage(BaseModel):
    """Message body exchanged between stage queues."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "jobId": "550e8400-e29b-41d4-a716-446655440000",
                "type": "text",
                "stage": "ocr",
                "payload": {"text": "great product", "languageCode": "en"},
            }
        },
    )

    job_id: str = Field(..., alias="jobId", min_length=1, description="Job ID and correlation key")
    type: str = Field(default="full", description="Pipeline variant tag")
    stage: str | None = Field(default=None, description="Stage the message is addressed to")
    payload: dict[str, Any] | None = Field(default=None, description="Original request input")

    def to_body(self) -> dict[str, Any]:
        """Serialise with wire (camelCase) names, omitting an absent payload."""
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_stage_message(body: bytes) -> StageMessage:
    """
    Parse and validate a queue message body.

    Args:
        body: Raw message bytes

    Returns:
        StageMessage: Validated message

    Raises:
        MessageParseError: Invalid JSON, not an object, or missing jobId
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MessageParseError(f"Invalid JSON in message body: {e}") from e

    if not isinstance(data, dict):
        raise MessageParseError("Message body is not a JSON object")
    if not data.get("jobId"):
        raise MessageParseError("Message without jobId")

    try:
        return StageMessage.model_validate(data)
    except ValidationError as e:
        raise MessageParseError(f"Invalid message schema: {e}") from e
