"""answer-rag domain models."""

from .answers import (
    Answer,
    AnswerEvent,
    AnswerEventKind,
    AnswerPayload,
    Question,
    VectorPoint,
    answer_point_id,
)
from .base import AnswerRAGBaseModel, TimestampedModel
from .rag import (
    AnswerStatus,
    AskRequest,
    AskResponse,
    DistanceMetric,
    IndexedPoint,
    RAGAnswer,
    SearchHit,
)
from .sync import (
    PendingIndexOp,
    ReconcileReport,
    SyncOperation,
    SyncOutcome,
    SyncStatus,
)

__all__ = [
    # Base models
    "AnswerRAGBaseModel",
    "TimestampedModel",

    # Question/answer models
    "Question",
    "Answer",
    "AnswerEvent",
    "AnswerEventKind",
    "AnswerPayload",
    "VectorPoint",
    "answer_point_id",

    # RAG models
    "DistanceMetric",
    "SearchHit",
    "IndexedPoint",
    "AnswerStatus",
    "RAGAnswer",
    "AskRequest",
    "AskResponse",

    # Sync models
    "SyncOperation",
    "SyncStatus",
    "SyncOutcome",
    "PendingIndexOp",
    "ReconcileReport",
]
