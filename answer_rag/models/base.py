"""Base model classes for answer-rag."""

from datetime import datetime, UTC
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time used for model defaults."""
    return datetime.now(UTC)


class AnswerRAGBaseModel(BaseModel):
    """Base model with common configuration for all answer-rag models."""

    model_config = ConfigDict(
        # Keep enum objects in memory, serialize values only when needed
        use_enum_values=False,
        # Allow population by field name or alias
        populate_by_name=True,
        # Validate assignment after model creation
        validate_assignment=True,
        extra='forbid',
    )


class TimestampedModel(AnswerRAGBaseModel):
    """Base model for records that track when they were written."""

    recorded_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was written"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the record was last updated"
    )
