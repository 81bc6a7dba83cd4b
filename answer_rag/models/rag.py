"""Retrieval and question-answering models for answer-rag."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import AnswerRAGBaseModel


class DistanceMetric(str, Enum):
    """Similarity metric a collection is created with."""

    COSINE = "cosine"


class SearchHit(AnswerRAGBaseModel):
    """A ranked candidate returned by the vector index.

    The payload is kept as returned by the backend: points written by older
    versions may not match the current payload schema.
    """

    id: str = Field(description="Point identity")
    score: float = Field(description="Similarity score, higher is closer")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Point payload")


class IndexedPoint(AnswerRAGBaseModel):
    """A point read back from the vector index by id."""

    id: str = Field(description="Point identity")
    vector: List[float] = Field(default_factory=list, description="Stored vector")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Point payload")


class AnswerStatus(str, Enum):
    """Whether the answer text came from the model or is the fallback."""

    GENERATED = "generated"
    FALLBACK = "fallback"


class RAGAnswer(AnswerRAGBaseModel):
    """Result of one pass through the RAG pipeline."""

    answer: str = Field(description="Answer text shown to the asker")
    related_question_ids: List[int] = Field(
        default_factory=list,
        description="Deduplicated questions whose answers grounded the context"
    )
    context_items_used: int = Field(ge=0, description="Candidates that survived ranking")
    status: AnswerStatus = Field(description="Generated or fallback")
    index_degraded: bool = Field(
        default=False,
        description="The index could not be searched; context is empty"
    )

    @property
    def is_fallback(self) -> bool:
        return self.status is AnswerStatus.FALLBACK


class AskRequest(AnswerRAGBaseModel):
    """Request to answer a question from indexed community answers."""

    question: str = Field(description="Natural-language question")
    similarity_threshold: Optional[float] = Field(
        default=None,
        alias="similarityThreshold",
        description="Minimum similarity score for context candidates"
    )
    max_context_items: Optional[int] = Field(
        default=None,
        alias="maxContextItems",
        description="Maximum number of answers used as context"
    )


class AskResponse(AnswerRAGBaseModel):
    """Response body for an ask request."""

    answer: str = Field(description="Generated or fallback answer")
    related_question_ids: List[int] = Field(
        default_factory=list,
        alias="relatedQuestionIds",
        description="Related question identities"
    )
    context_items_used: int = Field(alias="contextItemsUsed", description="Context items used")
    status: AnswerStatus = Field(description="Generated or fallback")

    @classmethod
    def from_result(cls, result: RAGAnswer) -> "AskResponse":
        return cls(
            answer=result.answer,
            related_question_ids=result.related_question_ids,
            context_items_used=result.context_items_used,
            status=result.status,
        )
