"""QueueEntry — one row of the durable write-queue."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

DEFAULT_MAX_ATTEMPTS = 3


class EntryState(IntEnum):
    """Delivery state of a queue entry, stored as an integer column."""

    PENDING = 0
    PROCESSED = 1
    DEAD = -1

    @property
    def is_terminal(self) -> bool:
        return self is not EntryState.PENDING


@dataclass(frozen=True)
class QueueEntry:
    """Immutable snapshot of a queue entry.

    Attributes:
        id:           Insertion-ordered identifier; also the ack/fail handle.
        queue_name:   Logical queue the entry belongs to.
        message:      Serialized message body (JSON by convention).
        created_at:   Insertion time in epoch milliseconds.
        state:        Current :class:`EntryState`.
        attempts:     Failed deliveries so far.
        max_attempts: Failures allowed before the entry is dead-lettered.
        last_error:   Message of the most recent failure, if any.
    """

    id: int
    queue_name: str
    message: str
    created_at: int
    state: EntryState = EntryState.PENDING
    attempts: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    last_error: str | None = None
