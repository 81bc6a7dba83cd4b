"""SQLite-based pending index op storage."""

import asyncio
from datetime import datetime, UTC
from typing import List, Optional

import aiosqlite

from ...config.settings import Settings
from ...core.exceptions import OutboxError
from ...models.base import utc_now
from ...models.sync import PendingIndexOp, SyncOperation
from ...utils.date_utils import format_timestamp, parse_optional_timestamp, parse_timestamp
from .base import SyncOutbox

COLUMNS = (
    "answer_id, operation, question_id, text, created_at, version, attempts, "
    "last_error, next_attempt_at, recorded_at, updated_at"
)


def _sortable(dt: datetime) -> str:
    """UTC ISO string with fixed precision so text ordering matches time ordering."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


class SQLiteSyncOutbox(SyncOutbox):
    """Pending ops persisted in SQLite so they survive restarts.

    Completed ops are kept as ``done`` rows so per-answer versions stay
    monotonic.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.db_path = settings.SQLITE_DATABASE_PATH
        self._connection: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the database and create the outbox table."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)
            await self._create_tables()

            self.logger.info("SQLite sync outbox initialized", db_path=str(self.db_path))

        except Exception as e:
            raise OutboxError(f"Failed to initialize SQLite outbox: {e}", "initialize")

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None
            self.logger.info("SQLite sync outbox closed")

    async def _create_tables(self) -> None:
        create_table_sql = """
        CREATE TABLE IF NOT EXISTS pending_index_ops (
            answer_id INTEGER PRIMARY KEY,
            operation TEXT NOT NULL,
            question_id INTEGER,
            text TEXT,
            created_at TEXT,
            version INTEGER NOT NULL,
            attempts INTEGER NOT NULL DEFAULT 0,
            last_error TEXT,
            next_attempt_at TEXT NOT NULL,
            recorded_at TEXT NOT NULL,
            updated_at TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
        )
        """

        create_index_sql = """
        CREATE INDEX IF NOT EXISTS idx_pending_ops_due ON pending_index_ops(status, next_attempt_at);
        """

        await self._connection.execute(create_table_sql)
        await self._connection.executescript(create_index_sql)
        await self._connection.commit()

    def _ensure_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise OutboxError("Outbox not initialized")
        return self._connection

    async def record(self, op: PendingIndexOp) -> PendingIndexOp:
        connection = self._ensure_connection()

        try:
            async with self._write_lock:
                cursor = await connection.execute(
                    "SELECT version FROM pending_index_ops WHERE answer_id = ?", (op.answer_id,)
                )
                row = await cursor.fetchone()
                version = (row[0] if row else 0) + 1

                stored = op.model_copy(update={
                    "version": version,
                    "attempts": 0,
                    "last_error": None,
                    "next_attempt_at": op.recorded_at,
                })

                await connection.execute(
                    f"""
                    INSERT OR REPLACE INTO pending_index_ops ({COLUMNS}, status)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'pending')
                    """,
                    (
                        stored.answer_id,
                        stored.operation.value,
                        stored.question_id,
                        stored.text,
                        format_timestamp(stored.created_at) if stored.created_at else None,
                        stored.version,
                        stored.attempts,
                        stored.last_error,
                        _sortable(stored.next_attempt_at),
                        _sortable(stored.recorded_at),
                        None,
                    ),
                )
                await connection.commit()

            return stored

        except Exception as e:
            raise OutboxError(f"Failed to record pending op: {e}", "record")

    async def complete(self, answer_id: int, version: int) -> bool:
        connection = self._ensure_connection()

        try:
            async with self._write_lock:
                cursor = await connection.execute(
                    """
                    UPDATE pending_index_ops
                    SET status = 'done', text = NULL, updated_at = ?
                    WHERE answer_id = ? AND version = ? AND status = 'pending'
                    """,
                    (_sortable(utc_now()), answer_id, version),
                )
                await connection.commit()
            return cursor.rowcount > 0

        except Exception as e:
            raise OutboxError(f"Failed to complete pending op: {e}", "complete")

    async def mark_failed(self, answer_id: int, version: int, error: str, retry_at: datetime) -> bool:
        connection = self._ensure_connection()

        try:
            async with self._write_lock:
                cursor = await connection.execute(
                    """
                    UPDATE pending_index_ops
                    SET attempts = attempts + 1, last_error = ?, next_attempt_at = ?, updated_at = ?
                    WHERE answer_id = ? AND version = ? AND status = 'pending'
                    """,
                    (error, _sortable(retry_at), _sortable(utc_now()), answer_id, version),
                )
                await connection.commit()
            return cursor.rowcount > 0

        except Exception as e:
            raise OutboxError(f"Failed to mark pending op failed: {e}", "mark_failed")

    async def due(self, now: datetime, limit: int) -> List[PendingIndexOp]:
        connection = self._ensure_connection()

        try:
            cursor = await connection.execute(
                f"""
                SELECT {COLUMNS} FROM pending_index_ops
                WHERE status = 'pending' AND next_attempt_at <= ?
                ORDER BY next_attempt_at
                LIMIT ?
                """,
                (_sortable(now), limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_op(row) for row in rows]

        except Exception as e:
            raise OutboxError(f"Failed to list due ops: {e}", "due")

    async def get(self, answer_id: int) -> Optional[PendingIndexOp]:
        connection = self._ensure_connection()

        try:
            cursor = await connection.execute(
                f"SELECT {COLUMNS} FROM pending_index_ops WHERE answer_id = ? AND status = 'pending'",
                (answer_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_op(row) if row else None

        except Exception as e:
            raise OutboxError(f"Failed to get pending op: {e}", "get")

    async def pending_count(self) -> int:
        connection = self._ensure_connection()

        try:
            cursor = await connection.execute(
                "SELECT COUNT(*) FROM pending_index_ops WHERE status = 'pending'"
            )
            return (await cursor.fetchone())[0]

        except Exception as e:
            raise OutboxError(f"Failed to count pending ops: {e}", "pending_count")

    def _row_to_op(self, row) -> PendingIndexOp:
        """Convert database row to PendingIndexOp."""
        return PendingIndexOp(
            answer_id=row[0],
            operation=SyncOperation(row[1]),
            question_id=row[2],
            text=row[3],
            created_at=datetime.fromisoformat(row[4]) if row[4] else None,
            version=row[5],
            attempts=row[6],
            last_error=row[7],
            next_attempt_at=parse_timestamp(row[8]),
            recorded_at=parse_timestamp(row[9]),
            updated_at=parse_optional_timestamp(row[10]),
        )
