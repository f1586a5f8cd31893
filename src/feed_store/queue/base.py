"""WriteQueue protocol — what application code needs to enqueue work."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class WriteQueue(ABC):
    """Producer side of a named, durable queue."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Logical queue name."""
        ...

    @abstractmethod
    async def send(self, message: Any) -> int:
        """Append *message* as a new pending entry and return its id."""
        ...
