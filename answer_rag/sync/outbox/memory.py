"""In-process pending index op storage."""

from datetime import datetime
from typing import Dict, List, Optional

from ...models.base import utc_now
from ...models.sync import PendingIndexOp
from .base import SyncOutbox


class MemorySyncOutbox(SyncOutbox):
    """Pending ops kept in memory; lost on restart."""

    def __init__(self) -> None:
        self._ops: Dict[int, PendingIndexOp] = {}
        self._versions: Dict[int, int] = {}

    async def initialize(self) -> None:
        self.logger.info("Memory sync outbox initialized")

    async def close(self) -> None:
        self.logger.info("Memory sync outbox closed", pending=len(self._ops))

    async def record(self, op: PendingIndexOp) -> PendingIndexOp:
        version = self._versions.get(op.answer_id, 0) + 1
        self._versions[op.answer_id] = version
        stored = op.model_copy(update={
            "version": version,
            "attempts": 0,
            "last_error": None,
            "next_attempt_at": op.recorded_at,
        })
        self._ops[op.answer_id] = stored
        return stored

    async def complete(self, answer_id: int, version: int) -> bool:
        current = self._ops.get(answer_id)
        if current is None or current.version != version:
            return False
        del self._ops[answer_id]
        return True

    async def mark_failed(self, answer_id: int, version: int, error: str, retry_at: datetime) -> bool:
        current = self._ops.get(answer_id)
        if current is None or current.version != version:
            return False
        self._ops[answer_id] = current.model_copy(update={
            "attempts": current.attempts + 1,
            "last_error": error,
            "next_attempt_at": retry_at,
            "updated_at": utc_now(),
        })
        return True

    async def due(self, now: datetime, limit: int) -> List[PendingIndexOp]:
        ready = [op for op in self._ops.values() if op.next_attempt_at <= now]
        ready.sort(key=lambda op: op.next_attempt_at)
        return ready[:limit]

    async def get(self, answer_id: int) -> Optional[PendingIndexOp]:
        return self._ops.get(answer_id)

    async def pending_count(self) -> int:
        return len(self._ops)
