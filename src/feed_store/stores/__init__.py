"""Namespaced key-value tables."""

from feed_store.stores.base import KeyValueStore, ListResult
from feed_store.stores.memory import InMemoryKVStore
from feed_store.stores.sqlite import SQLiteKVStore

__all__ = ["InMemoryKVStore", "KeyValueStore", "ListResult", "SQLiteKVStore"]
