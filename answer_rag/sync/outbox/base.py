"""Abstract base class for pending index op storage."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ...config.logging import LoggerMixin
from ...models.sync import PendingIndexOp


class SyncOutbox(ABC, LoggerMixin):
    """Write-ahead store of index mutations awaiting confirmation.

    Holds at most one pending op per answer. Versions are monotonic per
    answer for the lifetime of the store, including across completions.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the storage backend."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the storage backend."""
        pass

    @abstractmethod
    async def record(self, op: PendingIndexOp) -> PendingIndexOp:
        """Store ``op`` as the answer's pending op, superseding any older one.

        Returns the stored op with its assigned version.
        """
        pass

    @abstractmethod
    async def complete(self, answer_id: int, version: int) -> bool:
        """Drop the pending op if ``version`` is still current."""
        pass

    @abstractmethod
    async def mark_failed(self, answer_id: int, version: int, error: str, retry_at: datetime) -> bool:
        """Count a failed attempt and schedule the next one, if ``version`` is current."""
        pass

    @abstractmethod
    async def due(self, now: datetime, limit: int) -> List[PendingIndexOp]:
        """Pending ops whose next attempt is at or before ``now``, oldest first."""
        pass

    @abstractmethod
    async def get(self, answer_id: int) -> Optional[PendingIndexOp]:
        """The answer's pending op, if any."""
        pass

    @abstractmethod
    async def pending_count(self) -> int:
        pass
