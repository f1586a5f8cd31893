"""SQLiteKVStore — one namespace table on the shared aiosqlite connection."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from feed_store.exceptions import DecodeError, TransactionError
from feed_store.stores.base import (
    DEFAULT_LIST_LIMIT,
    Entries,
    KeyValueStore,
    ListResult,
    ValueType,
    check_limit,
    page,
)

if TYPE_CHECKING:
    from feed_store.engine import StorageEngine

logger = logging.getLogger(__name__)

# Stay well below SQLite's bound-parameter limit for IN (...) lookups.
_MAX_VARIABLES = 500

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS "{table}" (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class SQLiteKVStore(KeyValueStore):
    """Persistent namespace table backed by the engine's SQLite database.

    Each namespace is its own physical table, so keys never encode their
    namespace and cannot collide across namespaces.  The table borrows the
    engine's connection and never closes it.

    Parameters:
        engine: The :class:`~feed_store.engine.StorageEngine` that owns the
                connection.
        table:  Namespace / table name.  Must be a plain SQL identifier; the
                engine validates it before constructing the table.
    """

    def __init__(self, engine: StorageEngine, table: str) -> None:
        self._engine = engine
        self._table = table

        self._sql_get = f'SELECT value FROM "{table}" WHERE key = ?'
        self._sql_put = f'INSERT OR REPLACE INTO "{table}" (key, value) VALUES (?, ?)'
        self._sql_delete = f'DELETE FROM "{table}" WHERE key = ?'

    async def setup(self) -> None:
        """Create the table if it does not exist yet."""
        async with self._engine.session() as db:
            await db.execute(_CREATE_TABLE.format(table=self._table))

    @property
    def namespace(self) -> str:
        return self._table

    def _decode(self, key: str, value: str, type: ValueType) -> Any:
        if type != "json":
            return value
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing JSON for key %s in %s: %s", key, self._table, exc)
            raise DecodeError(key, str(exc)) from exc

    # ── reads ────────────────────────────────────────────────

    async def get(self, key: str, *, type: ValueType = "text") -> Any:
        async with self._engine.session() as db:
            async with db.execute(self._sql_get, (key,)) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        return self._decode(key, row[0], type)

    async def get_multiple(self, keys: Iterable[str], *, type: ValueType = "text") -> dict[str, Any]:
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}

        rows: list[tuple[str, str]] = []
        async with self._engine.session() as db:
            for start in range(0, len(wanted), _MAX_VARIABLES):
                chunk = wanted[start : start + _MAX_VARIABLES]
                placeholders = ",".join("?" * len(chunk))
                sql = f'SELECT key, value FROM "{self._table}" WHERE key IN ({placeholders})'
                async with db.execute(sql, chunk) as cursor:
                    rows.extend(await cursor.fetchall())

        return {key: self._decode(key, value, type) for key, value in rows}

    async def list(
        self,
        *,
        prefix: str = "",
        limit: int = DEFAULT_LIST_LIMIT,
        cursor: str | None = None,
    ) -> ListResult:
        """Return one page of keys starting with *prefix*.

        Pagination is keyset-based: the cursor is the last key of the previous
        page and the next page starts strictly after it.
        """
        check_limit(limit)

        sql = f'SELECT key FROM "{self._table}" WHERE substr(key, 1, ?) = ?'
        params: list[Any] = [len(prefix), prefix]
        if cursor:
            sql += " AND key > ?"
            params.append(cursor)
        sql += " ORDER BY key ASC LIMIT ?"
        params.append(limit)

        async with self._engine.session() as db:
            async with db.execute(sql, params) as result:
                rows = await result.fetchall()

        return page([row[0] for row in rows], limit)

    # ── writes ───────────────────────────────────────────────

    async def put(self, key: str, value: str) -> None:
        async with self._engine.session() as db:
            await db.execute(self._sql_put, (key, value))

    async def put_multiple(self, entries: Entries) -> list[str]:
        """Write every entry in one transaction.

        Returns an empty list on success.  On failure nothing is written and
        every key of the batch is returned.
        """
        items = list(dict(entries).items())
        if not items:
            return []

        if len(items) == 1:
            key, value = items[0]
            await self.put(key, value)
            return []

        try:
            async with self._engine.transaction("put_multiple") as db:
                await db.executemany(self._sql_put, items)
        except TransactionError as exc:
            logger.error("SQLite bulk put failed on %s: %s", self._table, exc)
            return [key for key, _ in items]
        return []

    async def delete(self, key: str) -> None:
        async with self._engine.session() as db:
            await db.execute(self._sql_delete, (key,))

    async def delete_multiple(self, keys: Iterable[str]) -> list[str]:
        """Delete every key in one transaction.  Same contract as ``put_multiple``."""
        targets = list(dict.fromkeys(keys))
        if not targets:
            return []

        if len(targets) == 1:
            await self.delete(targets[0])
            return []

        try:
            async with self._engine.transaction("delete_multiple") as db:
                await db.executemany(self._sql_delete, [(key,) for key in targets])
        except TransactionError as exc:
            logger.error("SQLite bulk delete failed on %s: %s", self._table, exc)
            return targets
        return []
