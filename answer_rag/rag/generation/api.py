"""OpenAI-compatible chat completion model over HTTP."""

import aiohttp
from typing import Any, Dict, Optional

from ...core.exceptions import GenerationError
from .base import SYSTEM_PROMPT, GenerativeModel, build_user_prompt


class ChatCompletionModel(GenerativeModel):
    """Generative model served by a ``/chat/completions`` style endpoint."""

    def __init__(self, settings):
        super().__init__(settings)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def model_name(self) -> str:
        return self.settings.GENERATION_MODEL

    @property
    def endpoint_url(self) -> str:
        return f"{self.settings.GENERATION_API_BASE.rstrip('/')}{self.settings.GENERATION_ENDPOINT}"

    async def initialize(self) -> None:
        timeout = aiohttp.ClientTimeout(total=self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS)
        headers = {"Content-Type": "application/json"}
        if self.settings.GENERATION_API_KEY:
            headers["Authorization"] = f"Bearer {self.settings.GENERATION_API_KEY}"

        self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        self._initialized = True
        self.logger.info("Chat completion model initialized", url=self.endpoint_url, model=self.model_name)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None
        self._initialized = False
        self.logger.info("Chat completion model closed")

    def build_request(self, question: str, context: str) -> Dict[str, Any]:
        return {
            "model": self.settings.GENERATION_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(question, context)},
            ],
            "max_tokens": self.settings.GENERATION_MAX_TOKENS,
            "temperature": self.settings.GENERATION_TEMPERATURE,
        }

    async def generate(self, question: str, context: str) -> str:
        self._ensure_initialized()
        if not self._session:
            raise GenerationError("HTTP session not initialized")

        try:
            async with self._session.post(self.endpoint_url, json=self.build_request(question, context)) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise GenerationError(f"Model request failed: {response.status} - {error_text}")
                data = await response.json()
        except aiohttp.ClientError as e:
            raise GenerationError(f"Model request error: {e}")

        return self._extract_content(data)

    @staticmethod
    def _extract_content(data: Any) -> str:
        """First choice's message content, stripped."""
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise GenerationError("Empty response from model")

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = str(message.get("content") or "").strip()
        if not content:
            raise GenerationError("Model returned an empty answer")
        return content
