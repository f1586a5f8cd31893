"""QueueProcessor — in-process poller that drains the write-queue over HTTP.

Replaces a separate broker consumer.  On every tick the processor fetches a
small batch of pending entries and POSTs each raw message body to the
application's processing endpoint, translating the outcome into an ack or a
counted failure:

* malformed message          -> ``mark_failed("Invalid message format")``
* non-2xx response           -> ``mark_failed("HTTP <status>: <body>")``
* 2xx with ``success=false`` -> ``mark_failed("Processing returned success=false")``
* 2xx with ``success=true``  -> ``mark_processed``
* transport / parse error    -> ``mark_failed(<exception message>)``

Failures are retried on later ticks until the entry's attempts run out and it
is dead-lettered.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from feed_store.exceptions import DispatchError, InvalidMessageError, ProcessorLoopError
from feed_store.queue.schema import DispatchResult, parse_message

if TYPE_CHECKING:
    from feed_store.queue.models import QueueEntry
    from feed_store.queue.sqlite import SQLiteWriteQueue

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_BATCH_SIZE = 10
PROCESS_MESSAGE_PATH = "/queues/process-message"


class QueueProcessor:
    """Background poller for one :class:`SQLiteWriteQueue`.

    At most one batch is in flight at a time: a tick that fires while the
    previous one is still dispatching is skipped.  Entries within a batch are
    dispatched sequentially, in queue order.

    Parameters:
        queue:      The queue to drain.
        server_url: Base URL of the processing endpoint.  Can also be given
                    to :meth:`start_processing`.
        api_secret: Bearer token sent with each request; omitted when empty.
        batch_size: Maximum entries fetched per tick.
        timeout:    HTTP request timeout in seconds.
        transport:  Optional httpx transport (e.g. ``httpx.MockTransport``).

    Example:
        >>> processor = QueueProcessor(queue)
        >>> processor.start_processing("http://localhost:8787", "secret")
        >>> ...
        >>> await processor.stop_processing()
    """

    def __init__(
        self,
        queue: SQLiteWriteQueue,
        *,
        server_url: str = "",
        api_secret: str = "",
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._queue = queue
        self._server_url = server_url.rstrip("/")
        self._api_secret = api_secret
        self._batch_size = batch_size
        self._timeout = timeout
        self._transport = transport

        self._tick_lock = asyncio.Lock()
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[bool]] = set()

    @property
    def queue(self) -> SQLiteWriteQueue:
        return self._queue

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def busy(self) -> bool:
        """``True`` while a batch is being dispatched."""
        return self._tick_lock.locked()

    @property
    def endpoint(self) -> str:
        return f"{self._server_url}{PROCESS_MESSAGE_PATH}"

    # ── lifecycle ────────────────────────────────────────────

    def start_processing(
        self,
        server_url: str,
        api_secret: str = "",
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        """Start polling on the running event loop.

        Raises:
            ValueError: If *poll_interval_ms* is not positive.
            RuntimeError: If called outside a running event loop.
        """
        if poll_interval_ms < 1:
            raise ValueError(f"poll_interval_ms must be positive, got {poll_interval_ms}")
        if self.running:
            logger.debug("Queue processor already running")
            return

        self._server_url = server_url.rstrip("/")
        self._api_secret = api_secret
        self._timer = asyncio.get_running_loop().create_task(
            self._run_timer(poll_interval_ms / 1000),
            name=f"queue-processor:{self._queue.name}",
        )
        logger.info("Starting SQLite queue processor (poll interval: %dms)", poll_interval_ms)

    async def stop_processing(self) -> None:
        """Stop polling.  A batch already in flight finishes and records its outcomes."""
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass

        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)
        logger.info("SQLite queue processor stopped")

    async def _run_timer(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            tick = asyncio.create_task(self.run_once())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    # ── ticks ────────────────────────────────────────────────

    async def run_once(self) -> bool:
        """Process one batch of pending entries.

        Returns ``False`` without doing anything when another batch is still
        in flight, ``True`` otherwise.  Errors never escape a tick.
        """
        if self._tick_lock.locked():
            logger.debug("Previous batch still in flight, skipping tick")
            return False

        async with self._tick_lock:
            try:
                await self._process_pending()
            except Exception as exc:
                logger.error("%s", ProcessorLoopError(exc), exc_info=exc)
        return True

    async def _process_pending(self) -> None:
        pending = await self._queue.fetch_pending(self._batch_size)
        if not pending:
            return

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            for entry in pending:
                await self._process_entry(client, entry)

    async def _process_entry(self, client: httpx.AsyncClient, entry: QueueEntry) -> None:
        try:
            parse_message(entry.message)
        except InvalidMessageError as exc:
            logger.error("Invalid message format, skipping: %s (%s)", entry.id, exc.detail)
            await self._queue.mark_failed(entry.id, str(exc))
            return

        try:
            await self._dispatch(client, entry)
        except DispatchError as exc:
            logger.error("Queue processing failed for message %s: %s", entry.id, exc)
            await self._queue.mark_failed(entry.id, str(exc))
        except Exception as exc:
            logger.error("Error processing queue message %s: %r", entry.id, exc)
            await self._queue.mark_failed(entry.id, str(exc) or type(exc).__name__)
        else:
            await self._queue.mark_processed(entry.id)

    async def _dispatch(self, client: httpx.AsyncClient, entry: QueueEntry) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_secret:
            headers["Authorization"] = f"Bearer {self._api_secret}"

        response = await client.post(self.endpoint, content=entry.message, headers=headers)

        if not response.is_success:
            raise DispatchError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        result = DispatchResult.model_validate_json(response.content)
        if not result.success:
            raise DispatchError("Processing returned success=false", status_code=response.status_code)
