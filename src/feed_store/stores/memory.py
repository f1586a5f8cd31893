"""InMemoryKVStore — zero-config, dict-backed storage for development and testing."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from feed_store.exceptions import DecodeError
from feed_store.stores.base import (
    DEFAULT_LIST_LIMIT,
    Entries,
    KeyValueStore,
    ListResult,
    ValueType,
    check_limit,
    page,
)


class InMemoryKVStore(KeyValueStore):
    """In-memory namespace table using a plain dict.  Data is lost on process exit."""

    def __init__(self, namespace: str = "default") -> None:
        self._namespace = namespace
        self._data: dict[str, str] = {}

    @property
    def namespace(self) -> str:
        return self._namespace

    def _decode(self, key: str, value: str, type: ValueType) -> Any:
        if type != "json":
            return value
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise DecodeError(key, str(exc)) from exc

    async def get(self, key: str, *, type: ValueType = "text") -> Any:
        value = self._data.get(key)
        if value is None:
            return None
        return self._decode(key, value, type)

    async def get_multiple(self, keys: Iterable[str], *, type: ValueType = "text") -> dict[str, Any]:
        return {
            key: self._decode(key, self._data[key], type)
            for key in dict.fromkeys(keys)
            if key in self._data
        }

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def put_multiple(self, entries: Entries) -> list[str]:
        self._data.update(dict(entries))
        return []

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_multiple(self, keys: Iterable[str]) -> list[str]:
        for key in keys:
            self._data.pop(key, None)
        return []

    async def list(
        self,
        *,
        prefix: str = "",
        limit: int = DEFAULT_LIST_LIMIT,
        cursor: str | None = None,
    ) -> ListResult:
        check_limit(limit)
        keys = sorted(
            key
            for key in self._data
            if key.startswith(prefix) and (not cursor or key > cursor)
        )
        return page(keys[:limit], limit)
