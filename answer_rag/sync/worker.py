"""Keeps the answer vector index in step with committed answer writes."""

import asyncio
import weakref
from datetime import timedelta
from typing import Optional, Set

from ..config.logging import LoggerMixin
from ..config.settings import Settings
from ..core.exceptions import SyncError
from ..models.answers import Answer, AnswerEvent, AnswerEventKind, VectorPoint, answer_point_id
from ..models.base import utc_now
from ..models.rag import DistanceMetric
from ..models.sync import PendingIndexOp, SyncOperation, SyncOutcome, SyncStatus
from ..rag.embeddings import EmbeddingManager
from ..rag.index import VectorIndex
from ..utils.async_utils import backoff_delay
from .outbox import SyncOutbox

SUPERSEDED = "superseded"


class AnswerSyncWorker(LoggerMixin):
    """Turns answer events into vector index mutations.

    Runs after the relational write has committed and never raises back into
    it: every failure ends up in the returned :class:`SyncOutcome` and, when an
    outbox is configured, in a pending op the reconciler retries.
    """

    def __init__(
        self,
        settings: Settings,
        embedding_manager: EmbeddingManager,
        vector_index: VectorIndex,
        outbox: Optional[SyncOutbox] = None,
    ):
        self.settings = settings
        self.embedding_manager = embedding_manager
        self.vector_index = vector_index
        self.outbox = outbox

        self._collection_lock = asyncio.Lock()
        self._collection_ready = False
        self._answer_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._background: Set[asyncio.Task] = set()

    @property
    def collection(self) -> str:
        return self.settings.ANSWERS_COLLECTION

    async def handle(self, event: AnswerEvent) -> SyncOutcome:
        """Dispatch a committed answer event."""
        if event.kind is AnswerEventKind.CREATED:
            return await self.on_created(event.answer)
        if event.kind is AnswerEventKind.UPDATED:
            return await self.on_updated(event.answer)
        return await self.on_deleted(event.answer)

    def submit(self, event: AnswerEvent) -> asyncio.Task:
        """Schedule :meth:`handle` in the background; the caller does not wait for the index."""
        task = asyncio.create_task(self.handle(event))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for background syncs started with :meth:`submit`."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def on_created(self, answer: Answer) -> SyncOutcome:
        return await self._sync_upsert(answer)

    async def on_updated(self, answer: Answer) -> SyncOutcome:
        if answer.is_deleted:
            return await self.on_deleted(answer)
        return await self._sync_upsert(answer)

    async def on_deleted(self, answer: Answer) -> SyncOutcome:
        if not answer.is_top_level:
            return self._skipped(answer, SyncOperation.DELETE, "reply")
        return await self._submit(PendingIndexOp.delete(answer))

    async def _sync_upsert(self, answer: Answer) -> SyncOutcome:
        if not answer.is_top_level:
            return self._skipped(answer, SyncOperation.UPSERT, "reply")
        if not answer.text.strip():
            return self._skipped(answer, SyncOperation.UPSERT, "empty_text")
        return await self._submit(PendingIndexOp.upsert(answer))

    def _skipped(self, answer: Answer, operation: SyncOperation, reason: str) -> SyncOutcome:
        self.logger.debug("Answer sync skipped", answer_id=answer.id, reason=reason)
        return SyncOutcome(
            answer_id=answer.id,
            point_id=answer_point_id(answer.id),
            operation=operation,
            status=SyncStatus.SKIPPED,
            reason=reason,
        )

    async def _submit(self, op: PendingIndexOp) -> SyncOutcome:
        return await self.apply(await self._record(op))

    async def apply(self, op: PendingIndexOp) -> SyncOutcome:
        """Apply one pending op to the index and settle it in the outbox.

        An op whose version is no longer the answer's current one is skipped;
        the newer op carries the latest state.
        """
        async with self._lock_for(op.answer_id):
            if await self._is_superseded(op):
                self.logger.debug("Pending op superseded", answer_id=op.answer_id, version=op.version)
                return self._outcome(op, SyncStatus.SKIPPED, reason=SUPERSEDED)

            try:
                if op.operation is SyncOperation.UPSERT:
                    await self._apply_upsert(op)
                else:
                    await self._apply_delete(op)
            except SyncError as e:
                return await self._failed(op, e.message, e.details.get("stage"))
            except Exception as e:
                return await self._failed(op, str(e), "apply")

            await self._complete(op)
            self.logger.info(
                "Answer synced",
                answer_id=op.answer_id,
                point_id=op.point_id,
                operation=op.operation.value,
            )
            return self._outcome(op, SyncStatus.SYNCED)

    def _lock_for(self, answer_id: int) -> asyncio.Lock:
        lock = self._answer_locks.get(answer_id)
        if lock is None:
            lock = asyncio.Lock()
            self._answer_locks[answer_id] = lock
        return lock

    async def _apply_upsert(self, op: PendingIndexOp) -> None:
        answer = op.to_answer()

        try:
            vector = await self.embedding_manager.embed_text(answer.text)
        except Exception as e:
            raise SyncError(f"Failed to embed answer: {e}", op.answer_id, "embed")

        await self._ensure_collection(op.answer_id)

        point = VectorPoint.for_answer(answer, vector)
        try:
            await self.vector_index.upsert_point(
                self.collection,
                point.id,
                point.vector,
                point.payload.to_payload(),
            )
        except Exception as e:
            # The collection may have been dropped underneath us
            self._collection_ready = False
            raise SyncError(f"Failed to upsert point: {e}", op.answer_id, "upsert")

    async def _apply_delete(self, op: PendingIndexOp) -> None:
        try:
            if not self._collection_ready and not await self.vector_index.collection_exists(self.collection):
                self.logger.debug("Answers collection missing, nothing to delete", answer_id=op.answer_id)
                return
            await self.vector_index.delete_point(self.collection, op.point_id)
        except Exception as e:
            self._collection_ready = False
            raise SyncError(f"Failed to delete point: {e}", op.answer_id, "delete")

    async def _ensure_collection(self, answer_id: int) -> None:
        """Create the answers collection once per process, on first use."""
        if self._collection_ready:
            return

        async with self._collection_lock:
            if self._collection_ready:
                return
            try:
                if not await self.vector_index.collection_exists(self.collection):
                    dimension = self.embedding_manager.get_embedding_dimension()
                    await self.vector_index.create_collection(
                        self.collection, dimension, DistanceMetric.COSINE
                    )
                    self.logger.info(
                        "Answers collection created",
                        collection=self.collection,
                        dimension=dimension,
                    )
            except Exception as e:
                raise SyncError(f"Failed to create collection: {e}", answer_id, "collection")
            self._collection_ready = True

    async def _failed(self, op: PendingIndexOp, error: str, stage: Optional[str]) -> SyncOutcome:
        self.logger.warning(
            "Answer sync failed",
            answer_id=op.answer_id,
            operation=op.operation.value,
            stage=stage,
            error=error,
        )
        await self._mark_failed(op, error)
        return self._outcome(op, SyncStatus.FAILED, error=error)

    def _outcome(
        self,
        op: PendingIndexOp,
        status: SyncStatus,
        error: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> SyncOutcome:
        return SyncOutcome(
            answer_id=op.answer_id,
            point_id=op.point_id,
            operation=op.operation,
            status=status,
            error=error,
            reason=reason,
        )

    # Outbox bookkeeping: failures are logged, never raised

    async def _record(self, op: PendingIndexOp) -> PendingIndexOp:
        if self.outbox is None:
            return op
        try:
            return await self.outbox.record(op)
        except Exception as e:
            self.logger.warning("Failed to record pending op", answer_id=op.answer_id, error=str(e))
            return op

    async def _is_superseded(self, op: PendingIndexOp) -> bool:
        if self.outbox is None or op.version == 0:
            return False
        try:
            current = await self.outbox.get(op.answer_id)
        except Exception as e:
            self.logger.warning("Failed to read pending op", answer_id=op.answer_id, error=str(e))
            return False
        return current is None or current.version != op.version

    async def _complete(self, op: PendingIndexOp) -> None:
        if self.outbox is None or op.version == 0:
            return
        try:
            await self.outbox.complete(op.answer_id, op.version)
        except Exception as e:
            self.logger.warning("Failed to complete pending op", answer_id=op.answer_id, error=str(e))

    async def _mark_failed(self, op: PendingIndexOp, error: str) -> None:
        if self.outbox is None or op.version == 0:
            return
        delay = backoff_delay(
            op.attempts + 1,
            self.settings.RECONCILE_BASE_BACKOFF_SECONDS,
            self.settings.RECONCILE_MAX_BACKOFF_SECONDS,
        )
        retry_at = utc_now() + timedelta(seconds=delay)
        try:
            await self.outbox.mark_failed(op.answer_id, op.version, error, retry_at)
        except Exception as e:
            self.logger.warning("Failed to mark pending op failed", answer_id=op.answer_id, error=str(e))
