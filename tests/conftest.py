"""Shared test fixtures."""

import asyncio
import json
from datetime import UTC, datetime

import httpx
import pytest

from feed_store import StorageEngine
from feed_store.queue import QueueProcessor, SQLiteWriteQueue

SERVER_URL = "http://feed.test"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def engine():
    storage = StorageEngine(":memory:")
    await storage.open()
    yield storage
    await storage.close()


@pytest.fixture
def playlists(engine):
    return engine.playlists


@pytest.fixture
async def queue(engine, clock):
    return await SQLiteWriteQueue.create(engine, "test-queue", clock=clock)


@pytest.fixture
def valid_message():
    return {
        "id": "1",
        "operation": "create",
        "timestamp": "2024-01-01T00:00:00Z",
        "data": {},
    }


class Endpoint:
    """Scriptable stand-in for the application's processing endpoint."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []
        self.default = httpx.Response(200, json={"success": True})

    def reply(self, *responses: httpx.Response | Exception) -> None:
        self.responses.extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def endpoint():
    return Endpoint()


@pytest.fixture
def processor(queue, endpoint):
    return QueueProcessor(
        queue,
        server_url=SERVER_URL,
        api_secret="secret",
        transport=httpx.MockTransport(endpoint.handler),
    )


@pytest.fixture
def wait_until():
    async def wait(predicate, timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not await predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.01)

    return wait
