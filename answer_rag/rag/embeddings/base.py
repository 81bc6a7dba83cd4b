"""Embedding provider contract shared by the API and local backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import EmbeddingError


class EmbeddingProvider(ABC, LoggerMixin):
    """Turns question and answer text into fixed-length vectors.

    Subclasses fill ``_dimension`` no later than ``initialize`` and implement
    ``_embed_batch``. Every vector leaving ``embed_texts`` has been checked
    against that dimension, so the vector index never sees a short vector.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._initialized = False
        self._dimension: Optional[int] = None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def initialize(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    async def _embed_batch(self, texts: List[str]) -> List[Sequence[float]]:
        """Raw vectors for non-blank texts, in input order."""

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise EmbeddingError(f"{self.provider_name} provider not initialized")

    def _check_vector(self, vector: Optional[Sequence[float]]) -> List[float]:
        if vector is None or len(vector) == 0:
            raise EmbeddingError("Empty embedding vector received")
        if self._dimension is not None and len(vector) != self._dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch: expected {self._dimension}, got {len(vector)}"
            )
        return [float(value) for value in vector]

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch; blank texts are dropped before the backend call."""
        self._ensure_initialized()
        if not texts:
            return []

        usable = [text for text in texts if text.strip()]
        if not usable:
            raise EmbeddingError("No valid texts to embed")

        vectors = [self._check_vector(vector) for vector in await self._embed_batch(usable)]
        self.logger.debug("Texts embedded", provider=self.provider_name, count=len(vectors))
        return vectors

    async def embed_text(self, text: str) -> List[float]:
        if not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        return (await self.embed_texts([text]))[0]

    def get_embedding_dimension(self) -> int:
        self._ensure_initialized()
        return self._dimension

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "model_name": self.settings.EMBEDDING_MODEL,
            "provider": self.provider_name,
            "dimension": self.get_embedding_dimension(),
        }
