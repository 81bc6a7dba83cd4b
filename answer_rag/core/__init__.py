"""Core error types and service wiring for answer-rag."""

from .exceptions import (
    AnswerRAGError,
    ConfigurationError,
    DependencyError,
    EmbeddingError,
    GenerationError,
    ValidationError,
    VectorIndexError,
)

__all__ = [
    "AnswerRAGError",
    "ConfigurationError",
    "DependencyError",
    "EmbeddingError",
    "GenerationError",
    "ValidationError",
    "VectorIndexError",
]
