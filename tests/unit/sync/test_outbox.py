"""Tests for pending index op storage backends."""

from datetime import timedelta

import pytest
import pytest_asyncio

from answer_rag.config.settings import Settings
from answer_rag.core.exceptions import ConfigurationError, OutboxError
from answer_rag.models.base import utc_now
from answer_rag.models.sync import PendingIndexOp, SyncOperation
from answer_rag.sync.outbox import MemorySyncOutbox, SQLiteSyncOutbox, create_outbox
from tests.utils import AnswerTestHelper

make_answer = AnswerTestHelper.create_answer


class OutboxBehaviour:
    """Behaviour shared by every outbox backend; subclasses provide ``outbox``."""

    async def test_record_assigns_versions(self, outbox):
        first = await outbox.record(PendingIndexOp.upsert(make_answer(text="one")))
        second = await outbox.record(PendingIndexOp.upsert(make_answer(text="two")))

        assert first.version == 1
        assert second.version == 2
        assert await outbox.pending_count() == 1

        stored = await outbox.get(1)
        assert stored.version == 2
        assert stored.text == "two"
        assert stored.question_id == 10

    async def test_complete_requires_current_version(self, outbox):
        first = await outbox.record(PendingIndexOp.upsert(make_answer()))
        second = await outbox.record(PendingIndexOp.delete(make_answer()))

        assert not await outbox.complete(1, first.version)
        assert await outbox.get(1) is not None

        assert await outbox.complete(1, second.version)
        assert await outbox.get(1) is None
        assert await outbox.pending_count() == 0

    async def test_versions_stay_monotonic_after_completion(self, outbox):
        first = await outbox.record(PendingIndexOp.upsert(make_answer()))
        await outbox.complete(1, first.version)

        again = await outbox.record(PendingIndexOp.upsert(make_answer()))

        assert again.version == first.version + 1

    async def test_mark_failed_schedules_retry(self, outbox):
        op = await outbox.record(PendingIndexOp.upsert(make_answer()))
        retry_at = utc_now() + timedelta(seconds=30)

        assert await outbox.mark_failed(1, op.version, "index down", retry_at)

        stored = await outbox.get(1)
        assert stored.attempts == 1
        assert stored.last_error == "index down"
        assert stored.next_attempt_at == retry_at

    async def test_mark_failed_ignores_stale_version(self, outbox):
        op = await outbox.record(PendingIndexOp.upsert(make_answer()))
        await outbox.record(PendingIndexOp.upsert(make_answer()))

        assert not await outbox.mark_failed(1, op.version, "stale", utc_now())
        assert (await outbox.get(1)).attempts == 0

    async def test_record_resets_attempts(self, outbox):
        op = await outbox.record(PendingIndexOp.upsert(make_answer()))
        await outbox.mark_failed(1, op.version, "boom", utc_now() + timedelta(hours=1))

        replaced = await outbox.record(PendingIndexOp.upsert(make_answer(text="edited")))

        assert replaced.attempts == 0
        assert replaced.last_error is None
        assert len(await outbox.due(utc_now(), 10)) == 1

    async def test_due_filters_orders_and_limits(self, outbox):
        now = utc_now()
        for answer_id in (1, 2, 3):
            op = await outbox.record(PendingIndexOp.upsert(make_answer(answer_id=answer_id)))
            await outbox.mark_failed(
                answer_id, op.version, "boom", now + timedelta(seconds=10 * (4 - answer_id))
            )

        assert await outbox.due(now, 10) == []

        due = await outbox.due(now + timedelta(seconds=25), 10)
        assert [op.answer_id for op in due] == [3, 2]

        limited = await outbox.due(now + timedelta(minutes=5), 2)
        assert [op.answer_id for op in limited] == [3, 2]

    async def test_delete_op_round_trip(self, outbox):
        await outbox.record(PendingIndexOp.delete(make_answer(answer_id=5)))

        stored = await outbox.get(5)

        assert stored.operation is SyncOperation.DELETE
        assert stored.point_id == "answer-5"
        assert stored.text is None


class TestMemorySyncOutbox(OutboxBehaviour):

    @pytest_asyncio.fixture
    async def outbox(self, memory_outbox: MemorySyncOutbox) -> MemorySyncOutbox:
        return memory_outbox


class TestSQLiteSyncOutbox(OutboxBehaviour):

    @pytest_asyncio.fixture
    async def outbox(self, sqlite_outbox: SQLiteSyncOutbox) -> SQLiteSyncOutbox:
        return sqlite_outbox

    async def test_initialize_creates_database_file(self, test_settings: Settings):
        outbox = SQLiteSyncOutbox(test_settings)
        assert not test_settings.SQLITE_DATABASE_PATH.exists()

        await outbox.initialize()

        assert test_settings.SQLITE_DATABASE_PATH.exists()
        cursor = await outbox._connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='pending_index_ops'"
        )
        assert await cursor.fetchone() is not None
        await outbox.close()

    async def test_pending_ops_survive_restart(self, test_settings: Settings):
        answer = make_answer(text="python cache")
        outbox = SQLiteSyncOutbox(test_settings)
        await outbox.initialize()
        recorded = await outbox.record(PendingIndexOp.upsert(answer))
        await outbox.close()

        reopened = SQLiteSyncOutbox(test_settings)
        await reopened.initialize()
        try:
            stored = await reopened.get(answer.id)
            assert stored.version == recorded.version
            assert stored.text == "python cache"
            assert stored.created_at == answer.created_at
            assert stored.recorded_at == recorded.recorded_at
            assert stored.to_answer().question_id == answer.question_id
        finally:
            await reopened.close()

    async def test_not_initialized(self, test_settings: Settings):
        outbox = SQLiteSyncOutbox(test_settings)
        with pytest.raises(OutboxError, match="not initialized"):
            await outbox.pending_count()


class TestCreateOutbox:

    def test_memory_backend(self, test_settings: Settings):
        assert isinstance(create_outbox(test_settings), MemorySyncOutbox)

    def test_sqlite_backend(self, test_settings: Settings):
        test_settings.SYNC_OUTBOX_BACKEND = "sqlite"
        assert isinstance(create_outbox(test_settings), SQLiteSyncOutbox)

    def test_unknown_backend(self, test_settings: Settings):
        test_settings.SYNC_OUTBOX_BACKEND = "redis"
        with pytest.raises(ConfigurationError):
            create_outbox(test_settings)
