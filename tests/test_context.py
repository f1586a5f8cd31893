"""Tests for AppContext."""

import pytest

from feed_store import AppContext, ConfigurationError, Settings
from feed_store.config import DEFAULT_QUEUE_NAME
from feed_store.queue import SQLiteWriteQueue


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("FEED_STORE_DB_PATH", "FEED_STORE_QUEUE_NAME", "FEED_STORE_SERVER_URL"):
        monkeypatch.delenv(var, raising=False)


async def test_create_wires_services():
    settings = Settings(db_path=":memory:", server_url="http://feed.test/", api_secret="s")
    async with await AppContext.create(settings) as ctx:
        assert ctx.storage.is_open
        assert ctx.write_queue.name == DEFAULT_QUEUE_NAME
        assert ctx.processor.queue is ctx.write_queue
        assert ctx.processor.endpoint == "http://feed.test/queues/process-message"
        assert not ctx.processor.running


async def test_create_reads_environment(monkeypatch):
    monkeypatch.setenv("FEED_STORE_DB_PATH", ":memory:")
    monkeypatch.setenv("FEED_STORE_QUEUE_NAME", "env-queue")
    async with await AppContext.create() as ctx:
        assert ctx.write_queue.name == "env-queue"


async def test_create_requires_db_path():
    with pytest.raises(ConfigurationError):
        await AppContext.create(Settings())


async def test_namespaces_and_queue_share_one_database(tmp_path):
    settings = Settings(db_path=str(tmp_path / "feed.db"))
    async with await AppContext.create(settings) as ctx:
        await ctx.storage.playlists.put("p1", "{}")
        await ctx.write_queue.send({"operation": "create", "id": "p1", "timestamp": "t"})

    async with await AppContext.create(settings) as ctx:
        assert await ctx.storage.playlists.get("p1") == "{}"
        assert (await ctx.write_queue.stats()).pending == 1


async def test_start_queue_processor():
    ctx = await AppContext.create(Settings(db_path=":memory:", poll_interval_ms=50))
    ctx.start_queue_processor()
    assert ctx.processor.running

    await ctx.close()
    assert not ctx.processor.running
    assert not ctx.storage.is_open


async def test_close_is_idempotent():
    ctx = await AppContext.create(Settings(db_path=":memory:"))
    await ctx.close()
    await ctx.close()
    assert ctx.closed


async def test_create_closes_storage_when_queue_setup_fails(monkeypatch):
    engines = []

    async def failing_create(engine, name, **kwargs):
        engines.append(engine)
        raise RuntimeError("queue table unavailable")

    monkeypatch.setattr(SQLiteWriteQueue, "create", failing_create)

    with pytest.raises(RuntimeError):
        await AppContext.create(Settings(db_path=":memory:"))

    [engine] = engines
    assert not engine.is_open
