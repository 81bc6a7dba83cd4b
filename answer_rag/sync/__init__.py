"""Answer index synchronization.

- worker: Applies answer events to the vector index
- outbox: Write-ahead store of pending index ops
- reconciler: Background retry of pending ops
"""

from .outbox import MemorySyncOutbox, SQLiteSyncOutbox, SyncOutbox, create_outbox
from .reconciler import IndexReconciler
from .worker import AnswerSyncWorker

__all__ = [
    "AnswerSyncWorker",
    "IndexReconciler",
    "SyncOutbox",
    "MemorySyncOutbox",
    "SQLiteSyncOutbox",
    "create_outbox",
]
