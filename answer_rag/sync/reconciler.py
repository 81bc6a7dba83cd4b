"""Background retry of index mutations that have not been confirmed."""

import asyncio
from datetime import datetime
from typing import Optional

from ..config.logging import LoggerMixin
from ..config.settings import Settings
from ..models.base import utc_now
from ..models.sync import ReconcileReport, SyncStatus
from .outbox import SyncOutbox
from .worker import AnswerSyncWorker


class IndexReconciler(LoggerMixin):
    """Re-applies due pending ops through the worker until the index converges."""

    def __init__(self, settings: Settings, worker: AnswerSyncWorker, outbox: SyncOutbox) -> None:
        self.settings = settings
        self.worker = worker
        self.outbox = outbox
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def run_once(self, now: Optional[datetime] = None) -> ReconcileReport:
        """Retry one batch of due ops."""
        now = now or utc_now()
        ops = await self.outbox.due(now, self.settings.RECONCILE_BATCH_SIZE)

        report = ReconcileReport()
        for op in ops:
            outcome = await self.worker.apply(op)
            if outcome.status is SyncStatus.SKIPPED:
                continue
            report.attempted += 1
            if outcome.status is SyncStatus.SYNCED:
                report.succeeded += 1
            else:
                report.failed += 1

        report.remaining = await self.outbox.pending_count()

        if report.attempted:
            self.logger.info(
                "Reconcile pass finished",
                attempted=report.attempted,
                succeeded=report.succeeded,
                failed=report.failed,
                remaining=report.remaining,
            )
        return report

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._reconcile_loop())
        self.logger.info("Index reconciler started", interval=self.settings.RECONCILE_INTERVAL_SECONDS)

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self.logger.info("Index reconciler stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _reconcile_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
                await asyncio.sleep(self.settings.RECONCILE_INTERVAL_SECONDS)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in reconcile loop", error=str(e))
                await asyncio.sleep(self.settings.RECONCILE_INTERVAL_SECONDS)
