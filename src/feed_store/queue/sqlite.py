"""SQLiteWriteQueue — durable FIFO queue on the engine's shared database."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from feed_store._internal.clock import Clock, SystemClock, epoch_ms
from feed_store.queue.base import WriteQueue
from feed_store.queue.models import DEFAULT_MAX_ATTEMPTS, EntryState, QueueEntry
from feed_store.queue.schema import QueueStats

if TYPE_CHECKING:
    from feed_store.engine import StorageEngine

logger = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 10

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS write_queue (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    queue_name   TEXT    NOT NULL,
    message      TEXT    NOT NULL,
    created_at   INTEGER NOT NULL,
    processed    INTEGER NOT NULL DEFAULT 0,
    attempts     INTEGER NOT NULL DEFAULT 0,
    max_attempts INTEGER NOT NULL DEFAULT 3,
    last_error   TEXT
)
"""

_CREATE_PENDING_INDEX = """
CREATE INDEX IF NOT EXISTS idx_write_queue_pending
ON write_queue (processed, queue_name, id)
WHERE processed = 0
"""

_COLUMNS = "id, queue_name, message, created_at, processed, attempts, max_attempts, last_error"

_INSERT = (
    "INSERT INTO write_queue (queue_name, message, created_at, max_attempts) VALUES (?, ?, ?, ?)"
)
_FETCH_BY_STATE = (
    f"SELECT {_COLUMNS} FROM write_queue "
    "WHERE processed = ? AND queue_name = ? ORDER BY id ASC LIMIT ?"
)
_GET = f"SELECT {_COLUMNS} FROM write_queue WHERE id = ? AND queue_name = ?"
_MARK_PROCESSED = (
    "UPDATE write_queue SET processed = 1 WHERE id = ? AND queue_name = ? AND processed = 0"
)
# Increment and dead-letter in one statement so no reader sees a half-applied failure.
_MARK_FAILED = """
UPDATE write_queue
SET attempts = attempts + 1,
    last_error = ?,
    processed = CASE WHEN attempts + 1 >= max_attempts THEN -1 ELSE 0 END
WHERE id = ? AND queue_name = ? AND processed = 0
"""
_COUNT_BY_STATE = (
    "SELECT processed, COUNT(*) FROM write_queue WHERE queue_name = ? GROUP BY processed"
)


def _entry(row: Any) -> QueueEntry:
    return QueueEntry(
        id=row[0],
        queue_name=row[1],
        message=row[2],
        created_at=row[3],
        state=EntryState(row[4]),
        attempts=row[5],
        max_attempts=row[6],
        last_error=row[7],
    )


def serialize(message: Any) -> str:
    """Return *message* as text: strings as-is, everything else as JSON."""
    if isinstance(message, str):
        return message
    if isinstance(message, BaseModel):
        return message.model_dump_json()
    return json.dumps(message)


class SQLiteWriteQueue(WriteQueue):
    """One logical queue in the shared ``write_queue`` table.

    Entries are delivered in insertion order.  :meth:`fetch_pending` is a
    peek: an entry stays pending until it is explicitly acknowledged with
    :meth:`mark_processed` or exhausts its retries through
    :meth:`mark_failed`.  Nothing locks fetched rows, so only one consumer
    (the :class:`~feed_store.queue.processor.QueueProcessor`) should drain a
    queue.

    Parameters:
        engine:       Storage engine whose connection the queue borrows.
        name:         Logical queue name.
        max_attempts: Failures allowed before an entry is dead-lettered.
        clock:        Injectable clock for ``created_at`` timestamps.
    """

    def __init__(
        self,
        engine: StorageEngine,
        name: str,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Clock | None = None,
    ) -> None:
        self._engine = engine
        self._name = name
        self._max_attempts = max_attempts
        self._clock = clock or SystemClock()

    @classmethod
    async def create(cls, engine: StorageEngine, name: str, **kwargs: Any) -> SQLiteWriteQueue:
        """Construct the queue and make sure its table exists."""
        queue = cls(engine, name, **kwargs)
        await queue.setup()
        return queue

    async def setup(self) -> None:
        async with self._engine.session() as db:
            await db.execute(_CREATE_TABLE)
            await db.execute(_CREATE_PENDING_INDEX)

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    # ── producer ─────────────────────────────────────────────

    async def send(self, message: Any) -> int:
        body = serialize(message)
        async with self._engine.session() as db:
            cursor = await db.execute(
                _INSERT, (self._name, body, epoch_ms(self._clock), self._max_attempts)
            )
            entry_id = cursor.lastrowid
        logger.debug("Enqueued message %s on %s", entry_id, self._name)
        return int(entry_id or 0)

    # ── consumer ─────────────────────────────────────────────

    async def fetch_pending(self, limit: int = DEFAULT_FETCH_LIMIT) -> list[QueueEntry]:
        """Return up to *limit* pending entries, oldest first, without claiming them."""
        return await self._fetch(EntryState.PENDING, limit)

    async def mark_processed(self, entry_id: int) -> None:
        """Acknowledge an entry.  A repeated call is a no-op."""
        async with self._engine.session() as db:
            await db.execute(_MARK_PROCESSED, (entry_id, self._name))

    async def mark_failed(self, entry_id: int, error: str) -> None:
        """Record a failed delivery; dead-letter the entry once it runs out of attempts."""
        async with self._engine.session() as db:
            await db.execute(_MARK_FAILED, (error, entry_id, self._name))
            async with db.execute(_GET, (entry_id, self._name)) as cursor:
                row = await cursor.fetchone()

        if row is not None and row[4] == EntryState.DEAD:
            logger.warning(
                "Message %s on %s dead-lettered after %d attempts: %s",
                entry_id,
                self._name,
                row[5],
                error,
            )

    # ── inspection ───────────────────────────────────────────

    async def get(self, entry_id: int) -> QueueEntry | None:
        async with self._engine.session() as db:
            async with db.execute(_GET, (entry_id, self._name)) as cursor:
                row = await cursor.fetchone()
        return _entry(row) if row is not None else None

    async def fetch_dead(self, limit: int = 100) -> list[QueueEntry]:
        """Return up to *limit* dead-lettered entries, oldest first."""
        return await self._fetch(EntryState.DEAD, limit)

    async def stats(self) -> QueueStats:
        async with self._engine.session() as db:
            async with db.execute(_COUNT_BY_STATE, (self._name,)) as cursor:
                rows = await cursor.fetchall()

        counts = {EntryState(state): count for state, count in rows}
        return QueueStats(
            queue_name=self._name,
            pending=counts.get(EntryState.PENDING, 0),
            processed=counts.get(EntryState.PROCESSED, 0),
            dead=counts.get(EntryState.DEAD, 0),
        )

    async def _fetch(self, state: EntryState, limit: int) -> list[QueueEntry]:
        async with self._engine.session() as db:
            async with db.execute(_FETCH_BY_STATE, (int(state), self._name, limit)) as cursor:
                rows = await cursor.fetchall()
        return [_entry(row) for row in rows]
