"""Pytest configuration and shared fixtures for answer-rag tests."""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from answer_rag.config.settings import Settings
from answer_rag.rag.index import MemoryVectorIndex
from answer_rag.sync.outbox import MemorySyncOutbox, SQLiteSyncOutbox
from answer_rag.sync.worker import AnswerSyncWorker
from tests.utils import FakeEmbeddingManager, MockFactory, StubGenerativeModel


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with temporary directories and in-process backends."""
    return Settings(
        # Server settings
        SERVER_HOST="127.0.0.1",
        SERVER_PORT=8001,
        DEBUG=True,
        LOG_DIRECTORY=temp_dir / "logs",

        # Vector index (in memory)
        VECTOR_INDEX_BACKEND="memory",
        CHROMADB_PERSIST_DIRECTORY=temp_dir / "chroma",
        ANSWERS_COLLECTION="answers",

        # Embedding settings (mock)
        EMBEDDING_PROVIDER="api",
        EMBEDDING_API_BASE="http://mock-embedding-api:4000",
        EMBEDDING_DIMENSION=4,

        # Generation settings (mock)
        GENERATION_API_BASE="http://mock-model-api:4000",
        GENERATION_MODEL="test-model",

        # RAG settings
        RAG_SIMILARITY_THRESHOLD=0.7,
        RAG_MAX_CONTEXT_ITEMS=5,
        EXTERNAL_CALL_TIMEOUT_SECONDS=5.0,
        RAG_REQUEST_DEADLINE_SECONDS=10.0,

        # Sync settings
        SYNC_OUTBOX_BACKEND="memory",
        SQLITE_DATABASE_PATH=temp_dir / "data" / "sync_outbox.db",
        RECONCILE_INTERVAL_SECONDS=3600,
        RECONCILE_BASE_BACKOFF_SECONDS=5.0,
        RECONCILE_MAX_BACKOFF_SECONDS=60.0,
    )


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingManager:
    """Deterministic bag-of-words embeddings."""
    return FakeEmbeddingManager()


@pytest.fixture
def stub_model(test_settings: Settings) -> StubGenerativeModel:
    """Generative model that answers with a fixed string."""
    return StubGenerativeModel(test_settings)


@pytest_asyncio.fixture
async def memory_index() -> AsyncGenerator[MemoryVectorIndex, None]:
    index = MemoryVectorIndex()
    await index.initialize()
    yield index
    await index.close()


@pytest_asyncio.fixture
async def memory_outbox() -> AsyncGenerator[MemorySyncOutbox, None]:
    outbox = MemorySyncOutbox()
    await outbox.initialize()
    yield outbox
    await outbox.close()


@pytest_asyncio.fixture
async def sqlite_outbox(test_settings: Settings) -> AsyncGenerator[SQLiteSyncOutbox, None]:
    outbox = SQLiteSyncOutbox(test_settings)
    await outbox.initialize()
    yield outbox
    await outbox.close()


@pytest.fixture
def sync_worker(
    test_settings: Settings,
    fake_embeddings: FakeEmbeddingManager,
    memory_index: MemoryVectorIndex,
    memory_outbox: MemorySyncOutbox,
) -> AnswerSyncWorker:
    """Worker over the in-memory index and outbox."""
    return AnswerSyncWorker(test_settings, fake_embeddings, memory_index, memory_outbox)


@pytest.fixture
def mock_aiohttp_session():
    """Create a mock aiohttp session for API testing."""
    return MockFactory.create_aiohttp_session_mock({"vector": [0.1, 0.2, 0.3, 0.4]})


@pytest.fixture
def mock_chromadb_collection() -> MagicMock:
    _, collection = MockFactory.create_chromadb_mock()
    return collection


@pytest.fixture
def mock_vector_index() -> AsyncMock:
    """Vector index mock returning no hits."""
    index = AsyncMock()
    index.search.return_value = []
    index.collection_exists.return_value = True
    return index


# Environment cleanup
@pytest.fixture(autouse=True)
def cleanup_env():
    """Clean up environment variables before/after tests."""
    original_env = dict(os.environ)

    yield

    os.environ.clear()
    os.environ.update(original_env)
