"""Custom exceptions for the feed_store package."""

from __future__ import annotations

INVALID_MESSAGE_FORMAT = "Invalid message format"


class FeedStoreError(Exception):
    """Base exception for all feed_store errors."""


class ConfigurationError(FeedStoreError):
    """Raised when storage configuration is missing or invalid."""

    def __init__(self, setting: str, message: str) -> None:
        self.setting = setting
        super().__init__(f"Invalid configuration for '{setting}': {message}")


class StoreError(FeedStoreError):
    """Raised when a storage operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class DecodeError(StoreError):
    """Raised when a stored value cannot be decoded as requested."""

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        super().__init__("get", f"value for key '{key}' is not valid JSON ({detail})")


class TransactionError(StoreError):
    """Raised when a transaction fails and is rolled back."""


class QueueError(FeedStoreError):
    """Base exception for write-queue processing failures."""


class InvalidMessageError(QueueError):
    """Raised when a queued message does not match the expected shape."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(INVALID_MESSAGE_FORMAT)


class DispatchError(QueueError):
    """Raised when the processing endpoint rejects a message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ProcessorLoopError(QueueError):
    """Wraps an unexpected error raised while running a poll tick."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Error in queue processing loop: {cause}")
