"""API-based embedding provider implementation."""

import aiohttp
from typing import Any, Dict, List, Optional

from ...core.exceptions import EmbeddingError
from .base import EmbeddingProvider


class ApiEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for an HTTP service speaking ``{text}`` -> ``{vector}``."""

    def __init__(self, settings):
        super().__init__(settings)
        self._session: Optional[aiohttp.ClientSession] = None
        # The service does not report its dimension; it is fixed by configuration
        self._dimension = settings.EMBEDDING_DIMENSION

    @property
    def provider_name(self) -> str:
        return "api"

    @property
    def endpoint_url(self) -> str:
        base = (self.settings.EMBEDDING_API_BASE or "").rstrip("/")
        return f"{base}{self.settings.EMBEDDING_ENDPOINT}"

    async def initialize(self) -> None:
        """Initialize API-based embedding provider."""
        if not self.settings.EMBEDDING_API_BASE:
            raise EmbeddingError("EMBEDDING_API_BASE required for API provider")

        timeout = aiohttp.ClientTimeout(total=self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS)
        headers = {"Content-Type": "application/json"}
        if self.settings.EMBEDDING_API_KEY:
            headers["Authorization"] = f"Bearer {self.settings.EMBEDDING_API_KEY}"

        self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        self._initialized = True

        self.logger.info(
            "API embedding provider initialized",
            url=self.endpoint_url,
            dimension=self._dimension,
        )

    async def close(self) -> None:
        """Close the API embedding provider."""
        if self._session:
            await self._session.close()
            self._session = None

        self._initialized = False
        self.logger.info("API embedding provider closed")

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        """One request per text; the service has no batch endpoint."""
        try:
            return [await self._post_text(text) for text in texts]
        except EmbeddingError as e:
            self.logger.error("Failed to embed texts via API", count=len(texts), error=str(e))
            raise
        except Exception as e:
            self.logger.error("Failed to embed texts via API", count=len(texts), error=str(e))
            raise EmbeddingError(f"Failed to embed texts via API: {e}")

    async def _post_text(self, text: str) -> Optional[List[float]]:
        if not self._session:
            raise EmbeddingError("HTTP session not initialized")

        try:
            async with self._session.post(self.endpoint_url, json={"text": text}) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise EmbeddingError(f"API request failed: {response.status} - {error_text}")
                data: Dict[str, Any] = await response.json()
        except aiohttp.ClientError as e:
            raise EmbeddingError(f"API request error: {e}")

        return data.get("vector") if isinstance(data, dict) else None

    def get_model_info(self) -> Dict:
        info = super().get_model_info()
        info["api_url"] = self.endpoint_url
        return info
