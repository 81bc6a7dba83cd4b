"""Local sentence-transformers embedding provider implementation."""

import asyncio
from typing import List, Optional, Dict

try:
    from sentence_transformers import SentenceTransformer
except ImportError:
    SentenceTransformer = None

from ...core.exceptions import EmbeddingError
from .base import EmbeddingProvider


class LocalEmbeddingProvider(EmbeddingProvider):
    """In-process sentence-transformers embedding provider."""

    def __init__(self, settings):
        super().__init__(settings)
        self.model: Optional[SentenceTransformer] = None

    @property
    def provider_name(self) -> str:
        return "local"

    async def initialize(self) -> None:
        """Load the sentence-transformers model off the event loop."""
        if SentenceTransformer is None:
            raise EmbeddingError(
                "sentence-transformers not available. Install with: pip install 'answer-rag[local]'"
            )

        try:
            loop = asyncio.get_running_loop()
            self.model = await loop.run_in_executor(
                None,
                lambda: SentenceTransformer(self.settings.EMBEDDING_MODEL)
            )
            self._dimension = int(self.model.get_sentence_embedding_dimension())
            self._initialized = True

            self.logger.info(
                "Local embedding provider initialized",
                model=self.settings.EMBEDDING_MODEL,
                dimension=self._dimension
            )

        except Exception as e:
            self.logger.error("Failed to initialize local embedding provider", error=str(e))
            raise EmbeddingError(f"Local embedding provider initialization failed: {e}")

    async def close(self) -> None:
        """Release the local model."""
        self.model = None
        self._initialized = False
        self.logger.info("Local embedding provider closed")

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Encode the batch in a worker thread."""
        try:
            loop = asyncio.get_running_loop()
            encoded = await loop.run_in_executor(
                None,
                lambda: self.model.encode(texts, convert_to_tensor=False)
            )
        except Exception as e:
            self.logger.error("Failed to embed texts locally", count=len(texts), error=str(e))
            raise EmbeddingError(f"Failed to embed texts locally: {e}")

        return list(encoded)

    def get_model_info(self) -> Dict:
        """Get local provider model information."""
        info = super().get_model_info()
        if self.model:
            info["max_sequence_length"] = getattr(self.model, 'max_seq_length', 'unknown')
        return info
