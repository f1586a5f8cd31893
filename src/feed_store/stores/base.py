"""KeyValueStore protocol — namespaced string-to-string persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

DEFAULT_LIST_LIMIT = 1000

ValueType = Literal["text", "json"]
Entries = Mapping[str, str] | Iterable[tuple[str, str]]


@dataclass(frozen=True)
class ListResult:
    """One page of keys returned by :meth:`KeyValueStore.list`.

    Attributes:
        keys:        Matching keys in ascending order.
        is_complete: ``False`` when the page was full and more keys may follow.
        cursor:      Last key of a full page; pass it back to resume after it.
    """

    keys: list[str] = field(default_factory=list)
    is_complete: bool = True
    cursor: str | None = None


class KeyValueStore(ABC):
    """Abstract base for one namespace table.

    Values are opaque strings.  Callers choose whether they hold raw text or
    JSON and may ask ``get`` / ``get_multiple`` to decode JSON for them.
    """

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Name of the namespace this table holds."""
        ...

    @abstractmethod
    async def get(self, key: str, *, type: ValueType = "text") -> Any:
        """Return the stored value, or ``None`` if not found.

        Raises:
            DecodeError: ``type="json"`` and the stored value is not JSON.
        """
        ...

    @abstractmethod
    async def get_multiple(self, keys: Iterable[str], *, type: ValueType = "text") -> dict[str, Any]:
        """Return a mapping of the requested keys that exist.  Absent keys are omitted."""
        ...

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Create or overwrite a value."""
        ...

    @abstractmethod
    async def put_multiple(self, entries: Entries) -> list[str]:
        """Write all entries atomically.  Returns the failed keys (all or none)."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a value.  No-op if the key does not exist."""
        ...

    @abstractmethod
    async def delete_multiple(self, keys: Iterable[str]) -> list[str]:
        """Delete all keys atomically.  Returns the failed keys (all or none)."""
        ...

    @abstractmethod
    async def list(
        self,
        *,
        prefix: str = "",
        limit: int = DEFAULT_LIST_LIMIT,
        cursor: str | None = None,
    ) -> ListResult:
        """Return keys starting with *prefix*, ascending, after *cursor*."""
        ...


def check_limit(limit: int) -> int:
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit}")
    return limit


def page(keys: list[str], limit: int) -> ListResult:
    """Build a :class:`ListResult` from at most *limit* sorted keys."""
    if len(keys) == limit:
        return ListResult(keys=keys, is_complete=False, cursor=keys[-1])
    return ListResult(keys=keys, is_complete=True)
