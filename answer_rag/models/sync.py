"""Index synchronization models: outcomes and pending index ops."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .answers import Answer, answer_point_id
from .base import AnswerRAGBaseModel, TimestampedModel, utc_now


class SyncOperation(str, Enum):
    """Index mutation derived from an answer write."""

    UPSERT = "upsert"
    DELETE = "delete"


class SyncStatus(str, Enum):
    """Result of applying one index mutation."""

    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"


class SyncOutcome(AnswerRAGBaseModel):
    """What happened to the index for one answer event."""

    answer_id: int = Field(description="Answer identity")
    point_id: str = Field(description="Vector point identity")
    operation: SyncOperation = Field(description="Attempted index mutation")
    status: SyncStatus = Field(description="Outcome of the attempt")
    error: Optional[str] = Field(default=None, description="Failure description")
    reason: Optional[str] = Field(default=None, description="Why the event was skipped")

    @property
    def succeeded(self) -> bool:
        return self.status is SyncStatus.SYNCED


class PendingIndexOp(TimestampedModel):
    """Write-ahead record of an index mutation not yet confirmed applied.

    One record per answer: recording a newer mutation replaces the older one
    and bumps ``version`` so a stale attempt cannot complete it.
    """

    answer_id: int = Field(ge=1, description="Answer identity")
    operation: SyncOperation = Field(description="Mutation to apply")
    question_id: Optional[int] = Field(default=None, description="Parent question identity")
    text: Optional[str] = Field(default=None, description="Answer text to embed")
    created_at: Optional[datetime] = Field(default=None, description="Answer creation time")
    version: int = Field(default=0, ge=0, description="Monotonic per-answer version")
    attempts: int = Field(default=0, ge=0, description="Failed attempts so far")
    last_error: Optional[str] = Field(default=None, description="Most recent failure")
    next_attempt_at: datetime = Field(
        default_factory=utc_now,
        description="Earliest time the reconciler retries this op"
    )

    @property
    def point_id(self) -> str:
        return answer_point_id(self.answer_id)

    @classmethod
    def upsert(cls, answer: Answer) -> "PendingIndexOp":
        return cls(
            answer_id=answer.id,
            operation=SyncOperation.UPSERT,
            question_id=answer.question_id,
            text=answer.text,
            created_at=answer.created_at,
        )

    @classmethod
    def delete(cls, answer: Answer) -> "PendingIndexOp":
        return cls(
            answer_id=answer.id,
            operation=SyncOperation.DELETE,
            question_id=answer.question_id,
        )

    def to_answer(self) -> Answer:
        """Rebuild the answer state needed to re-apply an upsert."""
        return Answer(
            id=self.answer_id,
            question_id=self.question_id,
            text=self.text or "",
            created_at=self.created_at or self.recorded_at,
        )


class ReconcileReport(AnswerRAGBaseModel):
    """Counts from one reconciler pass."""

    attempted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    remaining: int = Field(default=0, ge=0, description="Pending ops left after the pass")
