"""
answer-rag - Question answering over a community Q&A knowledge base.

This package provides:
- An answer index kept in sync with committed answer writes
- A write-ahead outbox and reconciler that retry failed index mutations
- A retrieval-augmented pipeline that answers questions from indexed answers
"""

__version__ = "0.1.0"

from .core.server import AnswerRAGServer
from .config.settings import Settings

__all__ = ["AnswerRAGServer", "Settings"]
