"""Pydantic models for queue messages, dispatch replies and queue inspection.

``QueueMessage`` is the contract between producers that enqueue change
notifications and the processing endpoint that consumes them.  Validation
fails closed: anything that is not a JSON object carrying a non-empty
``operation``, ``id`` and ``timestamp`` (string or non-zero number) is rejected.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
)

from feed_store.exceptions import InvalidMessageError


def _present(value: str | int | float) -> str | int | float:
    if not value:
        raise ValueError("must be a non-empty string or a non-zero number")
    return value


# Empty strings and zero count as missing.
Marker = Annotated[StrictStr | StrictInt | StrictFloat, AfterValidator(_present)]


class QueueMessage(BaseModel):
    """A change notification as stored in the write-queue.

    Attributes:
        operation: Operation identifier (e.g. ``"create_playlist"``).
        id:        Identifier of the record the operation applies to.
        timestamp: Time the change was made (ISO-8601 string or epoch number).
        data:      Operation payload.  Extra top-level fields are kept.
    """

    model_config = ConfigDict(extra="allow")

    operation: Marker
    id: Marker
    timestamp: Marker
    data: Any = None


class DispatchResult(BaseModel):
    """JSON body returned by the processing endpoint on a 2xx response."""

    success: bool = False


class QueueStats(BaseModel):
    """Entry counts by state for one queue.

    Attributes:
        queue_name: Queue the counts belong to.
        pending:    Entries still awaiting delivery.
        processed:  Entries acknowledged by the endpoint.
        dead:       Entries that exhausted their retry budget.
    """

    queue_name: str
    pending: int = 0
    processed: int = 0
    dead: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.processed + self.dead


def parse_message(raw: str) -> QueueMessage:
    """Validate a stored message body.

    Raises:
        InvalidMessageError: The body is not JSON, not an object, or lacks a
            required field.
    """
    try:
        return QueueMessage.model_validate_json(raw)
    except ValidationError as exc:
        raise InvalidMessageError(str(exc)) from exc
