"""Tests for InMemoryKVStore."""

import pytest

from feed_store import DecodeError
from feed_store.stores import InMemoryKVStore


@pytest.fixture
def store():
    return InMemoryKVStore("playlists")


async def test_get_nonexistent(store):
    assert await store.get("key") is None


async def test_put_and_get(store):
    await store.put("k", "v")
    assert await store.get("k") == "v"


async def test_overwrite(store):
    await store.put("k", "a")
    await store.put("k", "b")
    assert await store.get("k") == "b"


async def test_get_json(store):
    await store.put("k", '{"val": 1}')
    assert await store.get("k", type="json") == {"val": 1}


async def test_get_invalid_json_raises(store):
    await store.put("k", "not json")
    with pytest.raises(DecodeError):
        await store.get("k", type="json")


async def test_delete(store):
    await store.put("k", "v")
    await store.delete("k")
    assert await store.get("k") is None


async def test_delete_nonexistent(store):
    await store.delete("nope")  # should not raise


async def test_batches(store):
    assert await store.put_multiple({"a": "1", "b": "2", "c": "3"}) == []
    assert await store.get_multiple(["a", "c", "missing"]) == {"a": "1", "c": "3"}
    assert await store.delete_multiple(["a", "b"]) == []
    assert await store.get_multiple(["a", "b", "c"]) == {"c": "3"}


async def test_list_prefix_and_cursor(store):
    await store.put_multiple({f"playlist:{i}": "x" for i in range(5)})
    await store.put("channel:1", "x")

    first = await store.list(prefix="playlist:", limit=3)
    assert first.keys == ["playlist:0", "playlist:1", "playlist:2"]
    assert not first.is_complete
    assert first.cursor == "playlist:2"

    second = await store.list(prefix="playlist:", limit=3, cursor=first.cursor)
    assert second.keys == ["playlist:3", "playlist:4"]
    assert second.is_complete
    assert second.cursor is None


async def test_list_rejects_non_positive_limit(store):
    with pytest.raises(ValueError):
        await store.list(limit=0)
