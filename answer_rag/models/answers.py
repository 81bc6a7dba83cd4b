"""Question/answer domain models and the vector point schema."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import AnswerRAGBaseModel, utc_now

ANSWER_POINT_PREFIX = "answer-"


def answer_point_id(answer_id: int) -> str:
    """Deterministic vector point id for an answer."""
    return f"{ANSWER_POINT_PREFIX}{answer_id}"


class Question(AnswerRAGBaseModel):
    """A question owned by the relational store."""

    id: int = Field(ge=1, description="Question identity")
    title: str = Field(description="Question title")
    body: str = Field(default="", description="Question body")

    @property
    def text(self) -> str:
        """Text used when the question itself is asked of the RAG pipeline."""
        return f"{self.title}\n\n{self.body}"


class Answer(AnswerRAGBaseModel):
    """An answer (or reply) as committed to the relational store."""

    id: int = Field(ge=1, description="Answer identity")
    question_id: int = Field(ge=1, description="Parent question identity")
    parent_answer_id: Optional[int] = Field(
        default=None,
        description="Parent answer identity; None for a top-level answer"
    )
    text: str = Field(description="Answer text")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    is_deleted: bool = Field(default=False, description="Soft-delete flag")

    @property
    def is_top_level(self) -> bool:
        """Only top-level answers are indexed."""
        return self.parent_answer_id is None

    @property
    def point_id(self) -> str:
        return answer_point_id(self.id)


class AnswerEventKind(str, Enum):
    """Committed write that triggers an index sync."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AnswerEvent(AnswerRAGBaseModel):
    """Notification that an answer write has been committed."""

    kind: AnswerEventKind = Field(description="Kind of committed write")
    answer: Answer = Field(description="Answer state after the write")


class AnswerPayload(AnswerRAGBaseModel):
    """Fixed-schema payload stored alongside each answer vector.

    ``post_id`` is the canonical numeric question reference; ``question_id``
    carries the same number as a string.
    """

    answer_id: str = Field(description="Point identity of the answer")
    question_id: str = Field(description="Question reference as a string")
    answer_text: str = Field(description="Indexed answer text")
    is_active: bool = Field(default=True, description="Excluded from search when False")
    created_at: str = Field(description="Answer creation time, ISO-8601")
    post_id: int = Field(ge=1, description="Question reference")
    comment_id: int = Field(ge=1, description="Answer identity")

    @classmethod
    def from_answer(cls, answer: Answer, is_active: bool = True) -> "AnswerPayload":
        return cls(
            answer_id=answer_point_id(answer.id),
            question_id=str(answer.question_id),
            answer_text=answer.text,
            is_active=is_active,
            created_at=answer.created_at.isoformat(),
            post_id=answer.question_id,
            comment_id=answer.id,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Flat mapping written to the vector index."""
        return self.model_dump()


class VectorPoint(AnswerRAGBaseModel):
    """One answer's entry in the vector index."""

    id: str = Field(description="Point identity, answer-{id}")
    vector: List[float] = Field(description="Embedding of the answer text")
    payload: AnswerPayload = Field(description="Answer payload record")

    @classmethod
    def for_answer(cls, answer: Answer, vector: List[float]) -> "VectorPoint":
        return cls(
            id=answer_point_id(answer.id),
            vector=vector,
            payload=AnswerPayload.from_answer(answer),
        )
