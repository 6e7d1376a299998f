"""
Worker process entry point.

    python -m command_sync.main

Sets up logging, builds the queue, HTTP session, client, engine, reporter and
worker inside ``lifespan()`` and runs until SIGINT/SIGTERM.
"""
import asyncio
import signal
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

import aiohttp

from command_sync.config import HTTP_TIMEOUT_SECONDS, LOG_FILE, LOG_LEVEL
from command_sync.integrations.discord_commands import DiscordCommandClient
from command_sync.jobs.redis_queue import create_queue
from command_sync.jobs.sync_job import SyncJobHandler
from command_sync.jobs.worker import CommandSyncWorker
from command_sync.services.outcome_reporter import OutcomeReporter
from command_sync.services.reconciliation_engine import ReconciliationEngine
from command_sync.utils import get_logger, setup_logging
from command_sync.utils.ratelimiter import rate_limiter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncIterator[CommandSyncWorker]:
    """Build worker resources and tear them down on exit."""
    logger.info("Worker startup initiated")
    queue = await create_queue()
    timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
    session = aiohttp.ClientSession(timeout=timeout)
    worker = None
    try:
        client = DiscordCommandClient(session, limiter=rate_limiter)
        handler = SyncJobHandler(ReconciliationEngine(client), OutcomeReporter(session))
        worker = CommandSyncWorker(queue, handler)
        worker.start()
        logger.info("Worker startup completed successfully")
        yield worker
    finally:
        logger.info("Worker shutdown initiated")
        if worker is not None:
            await worker.stop()
        await session.close()
        await queue.close()
        logger.info("Worker shutdown completed")


async def run() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):  # pragma: no cover - not available on Windows
            loop.add_signal_handler(sig, stop.set)
    async with lifespan():
        await stop.wait()


def main() -> None:
    setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE, enable_console=True)
    asyncio.run(run())


if __name__ == "__main__":  # pragma: no cover
    main()
