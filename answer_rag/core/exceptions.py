"""Custom exceptions for answer-rag."""

from typing import Any, Dict, Optional


class AnswerRAGError(Exception):
    """Base exception for all answer-rag errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]
        if self.error_code:
            parts.append(f"(code: {self.error_code})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ConfigurationError(AnswerRAGError):
    """Raised when there's a configuration issue."""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, "CONFIGURATION_ERROR", details)


class ValidationError(AnswerRAGError):
    """Raised when request validation fails, before any external call."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class DependencyError(AnswerRAGError):
    """Raised when an external collaborator (embedding, index, model) fails."""

    def __init__(self, message: str, service: Optional[str] = None) -> None:
        details = {"service": service} if service else {}
        super().__init__(message, "DEPENDENCY_ERROR", details)


class EmbeddingError(DependencyError):
    """Raised when there's an embedding generation issue."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "embedding")
        self.error_code = "EMBEDDING_ERROR"


class VectorIndexError(DependencyError):
    """Raised when the vector index rejects or cannot serve a call."""

    def __init__(self, message: str, collection: Optional[str] = None) -> None:
        super().__init__(message, "vector_index")
        self.error_code = "VECTOR_INDEX_ERROR"
        if collection:
            self.details["collection"] = collection


class GenerationError(DependencyError):
    """Raised when the generative model call fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "generative_model")
        self.error_code = "GENERATION_ERROR"


class SyncError(AnswerRAGError):
    """Raised when an index sync stage fails for an answer."""

    def __init__(self, message: str, answer_id: Optional[int] = None, stage: Optional[str] = None) -> None:
        details: Dict[str, Any] = {}
        if answer_id is not None:
            details["answer_id"] = answer_id
        if stage:
            details["stage"] = stage
        super().__init__(message, "SYNC_ERROR", details)


class OutboxError(AnswerRAGError):
    """Raised when the pending index op store fails."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        details = {"operation": operation} if operation else {}
        super().__init__(message, "OUTBOX_ERROR", details)
