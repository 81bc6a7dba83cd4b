"""Pending index op storage.

- base: Abstract interface for the write-ahead outbox
- memory: In-process implementation
- sqlite: SQLite implementation that survives restarts
"""

from ...config.settings import Settings
from ...core.exceptions import ConfigurationError
from .base import SyncOutbox
from .memory import MemorySyncOutbox
from .sqlite import SQLiteSyncOutbox


def create_outbox(settings: Settings) -> SyncOutbox:
    """Build the configured outbox backend (not yet initialized)."""
    backend = settings.SYNC_OUTBOX_BACKEND
    if backend == "sqlite":
        return SQLiteSyncOutbox(settings)
    if backend == "memory":
        return MemorySyncOutbox()
    raise ConfigurationError(f"Unknown sync outbox backend: {backend}", "SYNC_OUTBOX_BACKEND")


__all__ = ["SyncOutbox", "MemorySyncOutbox", "SQLiteSyncOutbox", "create_outbox"]
