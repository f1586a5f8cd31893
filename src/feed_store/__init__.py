"""feed_store — embedded storage and write-queue for a single-process feed API.

One SQLite file holds every namespace table (playlists, channels, playlist
items) and the durable write-queue.  An in-process poller drains the queue to
the application's processing endpoint with bounded retries and dead-lettering.
"""

from feed_store.config import Settings, StorageConfig
from feed_store.context import AppContext
from feed_store.engine import StorageEngine
from feed_store.exceptions import (
    ConfigurationError,
    DecodeError,
    DispatchError,
    FeedStoreError,
    InvalidMessageError,
    ProcessorLoopError,
    QueueError,
    StoreError,
    TransactionError,
)
from feed_store.queue import EntryState, QueueEntry, QueueProcessor, SQLiteWriteQueue
from feed_store.stores import InMemoryKVStore, KeyValueStore, ListResult, SQLiteKVStore

__all__ = [
    "AppContext",
    "ConfigurationError",
    "DecodeError",
    "DispatchError",
    "EntryState",
    "FeedStoreError",
    "InMemoryKVStore",
    "InvalidMessageError",
    "KeyValueStore",
    "ListResult",
    "ProcessorLoopError",
    "QueueEntry",
    "QueueError",
    "QueueProcessor",
    "SQLiteKVStore",
    "SQLiteWriteQueue",
    "Settings",
    "StorageConfig",
    "StorageEngine",
    "StoreError",
    "TransactionError",
]
