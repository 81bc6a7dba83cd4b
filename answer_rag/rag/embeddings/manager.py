"""Embedding manager that selects and fronts a provider."""

from typing import List, Dict, Any, Optional

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import ConfigurationError, EmbeddingError
from .base import EmbeddingProvider
from .api import ApiEmbeddingProvider
from .local import LocalEmbeddingProvider

PROVIDERS = {
    "api": ApiEmbeddingProvider,
    "local": LocalEmbeddingProvider,
}


class EmbeddingManager(LoggerMixin):
    """Manages text embeddings for indexing and retrieval."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.provider: Optional[EmbeddingProvider] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the embedding manager with the configured provider."""
        provider_cls = PROVIDERS.get(self.settings.EMBEDDING_PROVIDER)
        if provider_cls is None:
            raise ConfigurationError(
                f"Unknown embedding provider: {self.settings.EMBEDDING_PROVIDER}",
                "EMBEDDING_PROVIDER",
            )

        try:
            self.provider = provider_cls(self.settings)
            await self.provider.initialize()
            self._initialized = True

            self.logger.info(
                "Embedding manager initialized",
                provider=self.provider.provider_name,
                model=self.settings.EMBEDDING_MODEL,
                dimension=self.provider.get_embedding_dimension(),
            )

        except EmbeddingError:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize embedding manager", error=str(e))
            raise EmbeddingError(f"Embedding manager initialization failed: {e}")

    async def close(self) -> None:
        """Close the embedding manager."""
        if self.provider:
            await self.provider.close()
            self.provider = None

        self._initialized = False
        self.logger.info("Embedding manager closed")

    def _ensure_initialized(self) -> None:
        """Ensure the embedding manager is initialized."""
        if not self._initialized or not self.provider:
            raise EmbeddingError("Embedding manager not initialized")

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        self._ensure_initialized()
        return await self.provider.embed_text(text)

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts."""
        self._ensure_initialized()
        return await self.provider.embed_texts(texts)

    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by the provider."""
        self._ensure_initialized()
        return self.provider.get_embedding_dimension()

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the embedding model."""
        self._ensure_initialized()
        return self.provider.get_model_info()
