"""
Vector index abstraction over answer embeddings.

- **VectorIndex**: abstract collection lifecycle and point upsert/delete/search
- **ChromaVectorIndex**: ChromaDB backend, embedded or client/server
- **MemoryVectorIndex**: numpy backend held in process memory

Use :func:`create_vector_index` to build the backend named by
``VECTOR_INDEX_BACKEND``.
"""

from ...config.settings import Settings
from ...core.exceptions import ConfigurationError
from .base import VectorIndex, matches_filter
from .chroma import ChromaVectorIndex
from .memory import MemoryVectorIndex


def create_vector_index(settings: Settings) -> VectorIndex:
    """Build the configured vector index backend (not yet initialized)."""
    backend = settings.VECTOR_INDEX_BACKEND
    if backend == "chroma":
        return ChromaVectorIndex(settings)
    if backend == "memory":
        return MemoryVectorIndex()
    raise ConfigurationError(f"Unknown vector index backend: {backend}", "VECTOR_INDEX_BACKEND")


__all__ = [
    "VectorIndex",
    "ChromaVectorIndex",
    "MemoryVectorIndex",
    "create_vector_index",
    "matches_filter",
]
