"""Durable write-queue and its in-process processor."""

from feed_store.queue.base import WriteQueue
from feed_store.queue.models import DEFAULT_MAX_ATTEMPTS, EntryState, QueueEntry
from feed_store.queue.processor import QueueProcessor
from feed_store.queue.schema import DispatchResult, QueueMessage, QueueStats, parse_message
from feed_store.queue.sqlite import SQLiteWriteQueue

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DispatchResult",
    "EntryState",
    "QueueEntry",
    "QueueMessage",
    "QueueProcessor",
    "QueueStats",
    "SQLiteWriteQueue",
    "WriteQueue",
    "parse_message",
]
