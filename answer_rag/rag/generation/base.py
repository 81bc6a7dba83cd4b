"""Abstract base class for generative answer models."""

from abc import ABC, abstractmethod

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import GenerationError

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions using the context provided. "
    "Answer accurately, concisely and in plain language. "
    "If the context is not sufficient to answer, say so clearly."
)

USER_PROMPT_TEMPLATE = (
    "Context:\n{context}\n\nQuestion: {question}\n\nAnswer based on the above context:"
)


def build_user_prompt(question: str, context: str) -> str:
    return USER_PROMPT_TEMPLATE.format(context=context, question=question)


class GenerativeModel(ABC, LoggerMixin):
    """Produces a natural-language answer from a question and its context."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the model client."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the model client."""
        pass

    @abstractmethod
    async def generate(self, question: str, context: str) -> str:
        """Generate an answer. Raises GenerationError on any failure."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise GenerationError(f"{self.model_name} model not initialized")
