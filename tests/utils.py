"""Test utilities and helper functions for answer-rag tests."""

import itertools
import re
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from answer_rag.config.settings import Settings
from answer_rag.core.exceptions import EmbeddingError, GenerationError, VectorIndexError
from answer_rag.models.answers import Answer, AnswerEvent, AnswerEventKind
from answer_rag.models.rag import SearchHit
from answer_rag.rag.generation import GenerativeModel
from answer_rag.rag.index import MemoryVectorIndex

_hit_ids = itertools.count(1)


class FakeEmbeddingManager:
    """Deterministic embeddings: one dimension per vocabulary word plus a bias.

    Texts sharing vocabulary words end up close under cosine similarity;
    texts with no shared words only share the bias component.
    """

    VOCABULARY = ["python", "database", "index", "async", "error", "deploy", "cache"]

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[str] = []
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False

    async def embed_text(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingError("Embedding service unavailable")
        if not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        words = re.findall(r"[a-z]+", text.lower())
        vector = [float(words.count(term)) for term in self.VOCABULARY]
        return vector + [0.1]

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        return [await self.embed_text(text) for text in texts]

    def get_embedding_dimension(self) -> int:
        return len(self.VOCABULARY) + 1


class StubGenerativeModel(GenerativeModel):
    """Generative model returning a canned answer, or failing on demand."""

    def __init__(self, settings: Settings, answer: str = "Use an index.", fail: bool = False):
        super().__init__(settings)
        self.answer = answer
        self.fail = fail
        self.calls: List[Dict[str, str]] = []

    @property
    def model_name(self) -> str:
        return "stub"

    async def initialize(self) -> None:
        self._initialized = True

    async def close(self) -> None:
        self._initialized = False

    async def generate(self, question: str, context: str) -> str:
        self.calls.append({"question": question, "context": context})
        if self.fail:
            raise GenerationError("Model unavailable")
        return self.answer


class UnreachableVectorIndex(MemoryVectorIndex):
    """Index whose backend cannot be reached when it is opened."""

    async def initialize(self) -> None:
        raise VectorIndexError("chroma unreachable")


class AnswerTestHelper:
    """Helper class for building answers, events and search hits."""

    @staticmethod
    def create_answer(
        answer_id: int = 1,
        question_id: int = 10,
        text: str = "Add a database index on the lookup column.",
        parent_answer_id: Optional[int] = None,
        is_deleted: bool = False,
    ) -> Answer:
        return Answer(
            id=answer_id,
            question_id=question_id,
            parent_answer_id=parent_answer_id,
            text=text,
            created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
            is_deleted=is_deleted,
        )

    @staticmethod
    def create_event(kind: AnswerEventKind, **kwargs) -> AnswerEvent:
        return AnswerEvent(kind=kind, answer=AnswerTestHelper.create_answer(**kwargs))

    @staticmethod
    def create_hit(
        score: float,
        answer_text: Optional[str] = "An answer",
        **payload: Any,
    ) -> SearchHit:
        body: Dict[str, Any] = dict(payload)
        if answer_text is not None:
            body["answer_text"] = answer_text
        return SearchHit(id=f"answer-{next(_hit_ids)}", score=score, payload=body)


class MockAsyncContextManager:
    """Async context manager yielding a fixed response."""

    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


class MockFactory:
    """Factory for creating various mocks used in tests."""

    @staticmethod
    def create_aiohttp_session_mock(
        response_data: Any = None,
        status: int = 200,
        error_text: str = "",
    ) -> AsyncMock:
        """Create a mock aiohttp session whose post/get yield one response."""
        session_mock = AsyncMock()
        response_mock = AsyncMock()
        response_mock.status = status
        response_mock.json = AsyncMock(return_value=response_data)
        response_mock.text = AsyncMock(return_value=error_text)

        context_manager = MockAsyncContextManager(response_mock)

        session_mock.post = MagicMock(return_value=context_manager)
        session_mock.get = MagicMock(return_value=context_manager)
        session_mock.close = AsyncMock()
        return session_mock

    @staticmethod
    def create_chromadb_mock():
        """Create a mock ChromaDB client and collection."""
        collection_mock = MagicMock()
        collection_mock.metadata = {"hnsw:space": "cosine", "dimension": 4}
        collection_mock.count.return_value = 2
        collection_mock.query.return_value = {
            "ids": [["answer-1", "answer-2"]],
            "distances": [[0.1, 0.4]],
            "metadatas": [[{"answer_text": "first", "post_id": 10}, {"answer_text": "second", "post_id": 11}]],
        }
        collection_mock.get.return_value = {
            "ids": ["answer-1"],
            "embeddings": [[0.1, 0.2, 0.3, 0.4]],
            "metadatas": [{"answer_text": "first", "post_id": 10}],
        }

        client_mock = MagicMock()
        client_mock.get_or_create_collection.return_value = collection_mock
        client_mock.get_collection.return_value = collection_mock
        client_mock.list_collections.return_value = ["answers"]

        return client_mock, collection_mock
