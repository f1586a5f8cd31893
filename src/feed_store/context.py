"""AppContext — the storage and queue services for one process, created once."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from feed_store.config import Settings
from feed_store.engine import StorageEngine
from feed_store.queue.processor import QueueProcessor
from feed_store.queue.sqlite import SQLiteWriteQueue

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application-owned bundle of the storage engine, write-queue and processor.

    Build it once at startup with :meth:`create`, pass it to request handlers
    and close it once at shutdown.  Closing stops the queue processor before
    releasing the database handle, so no tick runs against a closed engine.

    Attributes:
        settings:    Configuration the context was built from.
        storage:     The open :class:`StorageEngine`.
        write_queue: The application's write-queue.
        processor:   Poller draining ``write_queue`` to the processing endpoint.
    """

    settings: Settings
    storage: StorageEngine
    write_queue: SQLiteWriteQueue
    processor: QueueProcessor
    closed: bool = field(default=False, init=False)

    @classmethod
    async def create(cls, settings: Settings | None = None) -> AppContext:
        """Open storage and wire the write-queue and processor.

        Raises:
            ConfigurationError: If ``settings.db_path`` is empty.
        """
        settings = settings or Settings()
        storage = StorageEngine(settings.storage_config())
        await storage.open()

        try:
            write_queue = await SQLiteWriteQueue.create(storage, settings.queue_name)
            processor = QueueProcessor(
                write_queue,
                server_url=settings.server_url,
                api_secret=settings.api_secret,
                timeout=settings.dispatch_timeout,
            )
        except BaseException:
            await storage.close()
            raise
        logger.info("SQLite queue initialized: %s", write_queue.name)
        return cls(settings=settings, storage=storage, write_queue=write_queue, processor=processor)

    def start_queue_processor(self) -> None:
        """Start polling with the configured server URL, secret and interval."""
        self.processor.start_processing(
            self.settings.server_url,
            self.settings.api_secret,
            self.settings.poll_interval_ms,
        )

    async def close(self) -> None:
        """Stop the processor, then close storage.  Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        await self.processor.stop_processing()
        await self.storage.close()
        logger.info("SQLite connections closed")

    async def __aenter__(self) -> AppContext:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
