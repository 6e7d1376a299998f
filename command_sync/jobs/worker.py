"""Background worker consuming command sync messages."""
from __future__ import annotations

import asyncio
from typing import Optional

from command_sync.config import QUEUE_SETTINGS
from command_sync.jobs.queue import MessageQueueProtocol
from command_sync.jobs.sync_job import SyncJobHandler
from command_sync.utils import get_logger

logger = get_logger(__name__)


class CommandSyncWorker:
    """Takes one message at a time and waits for its sync to finish before the next."""

    def __init__(self, queue: MessageQueueProtocol, handler: SyncJobHandler, *, poll_timeout: Optional[float] = None):
        self.queue = queue
        self.handler = handler
        self.poll_timeout = float(poll_timeout if poll_timeout is not None else QUEUE_SETTINGS.get("poll_timeout", 5.0))  # type: ignore[arg-type]
        self.processed = 0
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:  # pragma: no cover
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop(), name="command-sync-worker")
        logger.info("Command sync worker started")

    async def stop(self) -> None:
        self._stop_event.set()
        logger.info("Command sync worker stop requested")
        if self._task is not None:
            await self._task
            self._task = None

    async def run_once(self) -> bool:
        """Receive and handle a single message. Returns False if none arrived."""
        body = await self.queue.receive(timeout=self.poll_timeout)
        if body is None:
            return False
        await self.handler.handle_message(body)
        self.processed += 1
        return True

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Worker loop error", error=str(e), exc_info=True)
                await asyncio.sleep(1)
        logger.info("Command sync worker stopped", processed=self.processed)


__all__ = ["CommandSyncWorker"]
