"""Time source for queue entry timestamps."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning an aware datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


def epoch_ms(clock: Clock) -> int:
    """Milliseconds since the Unix epoch according to *clock*.

    ``created_at`` on queue entries is stored in this unit.
    """
    return int(clock.now().timestamp() * 1000)
