"""Configuration settings for answer-rag."""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    SERVER_HOST: str = Field(default="localhost", description="Server host")
    SERVER_PORT: int = Field(default=8000, description="Server port")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_DIRECTORY: Path = Field(default=Path("./logs"), description="Log file directory")

    # Vector Index Configuration
    VECTOR_INDEX_BACKEND: str = Field(
        default="chroma", description="Vector index backend: 'chroma' or 'memory'"
    )
    CHROMADB_PERSIST_DIRECTORY: Path = Field(
        default=Path("./data/chroma"), description="ChromaDB persistence directory"
    )
    CHROMADB_HOST: Optional[str] = Field(
        default=None, description="ChromaDB server host (uses embedded client when unset)"
    )
    CHROMADB_PORT: int = Field(default=8001, description="ChromaDB server port")
    ANSWERS_COLLECTION: str = Field(
        default="answers", description="Collection holding indexed answers"
    )

    # Embedding Configuration
    EMBEDDING_PROVIDER: str = Field(
        default="api", description="Embedding provider: 'api' or 'local'"
    )
    EMBEDDING_MODEL: str = Field(
        default="all-MiniLM-L6-v2", description="Embedding model name"
    )
    EMBEDDING_API_BASE: Optional[str] = Field(
        default="http://localhost:8080", description="Embedding API base URL"
    )
    EMBEDDING_ENDPOINT: str = Field(default="/embed", description="Embedding API path")
    EMBEDDING_API_KEY: Optional[str] = Field(
        default=None, description="Embedding API key"
    )
    EMBEDDING_DIMENSION: int = Field(
        default=384, ge=1, description="Vector size produced by the embedding API"
    )

    # Generative Model Configuration
    GENERATION_API_BASE: str = Field(
        default="https://api.openai.com/v1", description="Chat completion API base URL"
    )
    GENERATION_ENDPOINT: str = Field(
        default="/chat/completions", description="Chat completion API path"
    )
    GENERATION_API_KEY: Optional[str] = Field(
        default=None, description="Chat completion API key"
    )
    GENERATION_MODEL: str = Field(default="gpt-3.5-turbo", description="Chat model name")
    GENERATION_MAX_TOKENS: int = Field(default=500, ge=1, description="Max answer tokens")
    GENERATION_TEMPERATURE: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Sampling temperature"
    )

    # RAG Configuration
    RAG_SIMILARITY_THRESHOLD: float = Field(
        default=0.7, ge=0.0, le=1.0, description="RAG similarity threshold"
    )
    RAG_MAX_CONTEXT_ITEMS: int = Field(
        default=5, ge=1, description="Maximum answers used as context"
    )
    RAG_OVERFETCH_FACTOR: int = Field(
        default=2, ge=1, description="Search limit multiplier applied before thresholding"
    )
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0, description="Timeout for each embedding/index/model call"
    )
    RAG_REQUEST_DEADLINE_SECONDS: float = Field(
        default=60.0, gt=0, description="Overall deadline for one ask request"
    )

    # Sync Configuration
    SYNC_OUTBOX_BACKEND: str = Field(
        default="sqlite", description="Pending index op storage: 'sqlite' or 'memory'"
    )
    SQLITE_DATABASE_PATH: Path = Field(
        default=Path("./data/sync_outbox.db"), description="SQLite outbox path"
    )
    RECONCILE_INTERVAL_SECONDS: int = Field(
        default=30, ge=1, description="Reconciler loop interval in seconds"
    )
    RECONCILE_BATCH_SIZE: int = Field(
        default=50, ge=1, description="Pending ops retried per reconciler pass"
    )
    RECONCILE_BASE_BACKOFF_SECONDS: float = Field(
        default=5.0, gt=0, description="First retry delay for a failed index op"
    )
    RECONCILE_MAX_BACKOFF_SECONDS: float = Field(
        default=900.0, gt=0, description="Upper bound on retry delay"
    )

    def create_directories(self) -> None:
        """Create necessary directories."""
        self.LOG_DIRECTORY.mkdir(parents=True, exist_ok=True)
        if self.SYNC_OUTBOX_BACKEND == "sqlite":
            self.SQLITE_DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        if self.VECTOR_INDEX_BACKEND == "chroma" and not self.CHROMADB_HOST:
            self.CHROMADB_PERSIST_DIRECTORY.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump()

    def __repr__(self) -> str:
        """String representation of settings."""
        return (
            f"Settings(host={self.SERVER_HOST}, port={self.SERVER_PORT}, "
            f"index={self.VECTOR_INDEX_BACKEND}, debug={self.DEBUG})"
        )
