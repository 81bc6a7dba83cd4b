"""Retrieval-augmented generation over the answer index."""

from .embeddings import EmbeddingManager
from .generation import ChatCompletionModel, GenerativeModel
from .index import VectorIndex, create_vector_index
from .orchestrator import RAGOrchestrator

__all__ = [
    "EmbeddingManager",
    "ChatCompletionModel",
    "GenerativeModel",
    "VectorIndex",
    "create_vector_index",
    "RAGOrchestrator",
]
