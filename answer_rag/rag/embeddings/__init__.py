"""
Embedding generation for answer indexing and question retrieval.

Provider backends:

- **API Provider**: POSTs ``{"text": ...}`` to an embedding service and reads ``{"vector": [...]}``
- **Local Provider**: Uses sentence-transformers for in-process embedding generation

EmbeddingManager selects the provider from ``EMBEDDING_PROVIDER`` and exposes a
fixed embedding dimension, which the sync worker uses when it creates the
answers collection.
"""

from .base import EmbeddingProvider
from .manager import EmbeddingManager

__all__ = ["EmbeddingManager", "EmbeddingProvider"]
