"""StorageEngine — owns the single SQLite handle shared by tables and queues."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from feed_store.config import StorageConfig
from feed_store.exceptions import ConfigurationError, StoreError, TransactionError
from feed_store.stores.sqlite import SQLiteKVStore

logger = logging.getLogger(__name__)

PLAYLISTS = "playlists"
CHANNELS = "channels"
PLAYLIST_ITEMS = "playlist_items"
DEFAULT_NAMESPACES = (PLAYLISTS, CHANNELS, PLAYLIST_ITEMS)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StorageEngine:
    """Durable storage for every namespace table and the write-queue.

    The engine exclusively owns one :class:`aiosqlite.Connection`.  Namespace
    tables and write-queues borrow it through :meth:`session` and
    :meth:`transaction` and never close it.  Both helpers hold an engine-wide
    lock, so statements from request handlers and from the queue processor
    never interleave inside a transaction.

    Parameters:
        config: A :class:`StorageConfig` or a database path.  Use
                ``":memory:"`` for an in-memory database (useful for testing).

    Raises:
        ConfigurationError: If no database path is supplied.

    Example:
        >>> async with StorageEngine("./data/feed.db") as engine:
        ...     await engine.playlists.put("p1", '{"title": "Morning"}')
    """

    def __init__(self, config: StorageConfig | str) -> None:
        if isinstance(config, str):
            config = StorageConfig(db_path=config)
        if not config.db_path:
            raise ConfigurationError("db_path", "a database path is required")

        self._config = config
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._namespaces: dict[str, SQLiteKVStore] = {}
        self._journal_mode = ""

    # ── lifecycle ────────────────────────────────────────────

    async def open(self) -> StorageEngine:
        """Connect, apply pragmas and create the default namespace tables."""
        if self._db is not None:
            return self

        if not self._config.in_memory:
            Path(self._config.db_path).parent.mkdir(parents=True, exist_ok=True)

        # Autocommit; multi-statement writes use explicit BEGIN/COMMIT.
        self._db = await aiosqlite.connect(self._config.db_path, isolation_level=None)

        # In-memory databases answer "memory" instead of "wal".
        async with self._db.execute("PRAGMA journal_mode = WAL") as cursor:
            row = await cursor.fetchone()
        self._journal_mode = str(row[0]).lower() if row else ""
        await self._db.execute("PRAGMA foreign_keys = ON")

        for name in DEFAULT_NAMESPACES:
            await self.namespace(name)

        logger.info(
            "SQLite storage initialized: %s (journal_mode=%s)",
            self._config.db_path,
            self._journal_mode,
        )
        return self

    async def close(self) -> None:
        """Close the database handle.  Safe to call more than once."""
        if self._db is None:
            return
        async with self._lock:
            await self._db.close()
            self._db = None
        self._namespaces.clear()
        logger.info("SQLite storage closed: %s", self._config.db_path)

    async def __aenter__(self) -> StorageEngine:
        return await self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── shared handle ────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._db is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreError("connection", "storage engine is not open")
        return self._db

    @property
    def db_path(self) -> str:
        return self._config.db_path

    @property
    def journal_mode(self) -> str:
        return self._journal_mode

    @asynccontextmanager
    async def session(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the connection while holding the engine lock."""
        async with self._lock:
            yield self.connection

    @asynccontextmanager
    async def transaction(self, operation: str = "transaction") -> AsyncIterator[aiosqlite.Connection]:
        """Run the enclosed statements as one atomic unit.

        Any SQLite error rolls the whole unit back and is re-raised as
        :class:`TransactionError`.  A closed engine fails the same way.
        """
        async with self._lock:
            db = self._db
            if db is None:
                raise TransactionError(operation, "storage engine is not open")
            try:
                await db.execute("BEGIN")
            except aiosqlite.Error as exc:
                raise TransactionError(operation, str(exc)) from exc
            try:
                yield db
            except aiosqlite.Error as exc:
                await _rollback(db)
                raise TransactionError(operation, str(exc)) from exc
            except BaseException:
                await _rollback(db)
                raise
            try:
                await db.execute("COMMIT")
            except aiosqlite.Error as exc:
                await _rollback(db)
                raise TransactionError(operation, str(exc)) from exc

    # ── namespaces ───────────────────────────────────────────

    async def namespace(self, name: str) -> SQLiteKVStore:
        """Return the table for *name*, creating it on first use."""
        store = self._namespaces.get(name)
        if store is not None:
            return store

        if not _IDENTIFIER.match(name):
            raise ConfigurationError("namespace", f"'{name}' is not a valid table name")

        store = SQLiteKVStore(self, name)
        await store.setup()
        return self._namespaces.setdefault(name, store)

    def _cached(self, name: str) -> SQLiteKVStore:
        store = self._namespaces.get(name)
        if store is None:
            raise StoreError(name, "storage engine is not open")
        return store

    @property
    def playlists(self) -> SQLiteKVStore:
        return self._cached(PLAYLISTS)

    @property
    def channels(self) -> SQLiteKVStore:
        return self._cached(CHANNELS)

    @property
    def playlist_items(self) -> SQLiteKVStore:
        return self._cached(PLAYLIST_ITEMS)


async def _rollback(db: aiosqlite.Connection) -> None:
    # SQLite may already have rolled back on its own (e.g. SQLITE_FULL).
    if db.in_transaction:
        await db.execute("ROLLBACK")
