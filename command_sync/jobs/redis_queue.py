"""Redis-backed command message queue.

Data structure in Redis:
 - List ``QUEUE_SETTINGS["queue_key"]`` (default ``commands``) holding raw
   JSON message bodies. Producers RPUSH, the worker BLPOPs, so delivery is
   FIFO.

Popping a message removes it from Redis; that is the acknowledgement. It
happens before the sync runs, so a crash mid-batch loses the message
(at-most-once delivery).
"""
from __future__ import annotations

from typing import Any, Optional

import redis
import redis.asyncio as aioredis

from command_sync.config import QUEUE_SETTINGS
from command_sync.jobs.queue import InMemoryCommandQueue, MessageBody, serialize_payload
from command_sync.utils import get_logger

logger = get_logger(__name__)


class RedisCommandQueue:
    def __init__(self, client: Optional[aioredis.Redis] = None, *, queue_key: Optional[str] = None) -> None:
        self._redis_url: str = str(QUEUE_SETTINGS.get("redis_url", "redis://localhost:6379/0"))
        self._queue_key: str = queue_key or str(QUEUE_SETTINGS.get("queue_key", "commands"))
        self._health_check_timeout = float(QUEUE_SETTINGS.get("redis_health_check_timeout", 2.0))  # type: ignore[arg-type]
        self._redis_client: aioredis.Redis = client or aioredis.from_url(
            self._redis_url, socket_connect_timeout=self._health_check_timeout
        )

    @property
    def queue_key(self) -> str:
        return self._queue_key

    async def health_check(self) -> bool:
        """Check if Redis answers a ping."""
        try:
            await self._redis_client.ping()
            return True
        except (redis.RedisError, ConnectionError, OSError) as e:
            logger.warning("Redis health check failed", url=self._redis_url, error=str(e))
            return False

    async def publish(self, payload: Any) -> None:
        await self._redis_client.rpush(self._queue_key, serialize_payload(payload))

    async def receive(self, timeout: Optional[float] = None) -> Optional[MessageBody]:
        """Pop the next message, waiting up to ``timeout`` seconds (None = forever)."""
        # BLPOP treats 0 as "block forever"
        result = await self._redis_client.blpop([self._queue_key], timeout=timeout or 0)
        if result is None:
            return None
        if isinstance(result, (list, tuple)) and len(result) == 2:
            _, value = result
            return value
        logger.warning("Unexpected result type from blpop", result_type=type(result).__name__)
        return None

    async def depth(self) -> int:
        return int(await self._redis_client.llen(self._queue_key) or 0)

    async def purge(self) -> None:
        await self._redis_client.delete(self._queue_key)
        logger.info("Redis command queue purged", key=self._queue_key)

    async def close(self) -> None:
        await self._redis_client.aclose()

    async def snapshot(self) -> dict:
        return {
            "depth": await self.depth(),
            "redis_active": True,
            "redis_url": self._redis_url,
            "queue_key": self._queue_key,
        }


class QueueUnavailableError(RuntimeError):
    """Redis is configured but could not be reached at startup."""


async def create_queue() -> RedisCommandQueue | InMemoryCommandQueue:
    """Create the configured queue.

    With ``use_redis`` set, an unreachable Redis raises QueueUnavailableError;
    the in-memory queue is only used when Redis is disabled. Once running,
    BLPOP errors are retried by the worker loop and the client reconnects.
    """
    if not QUEUE_SETTINGS.get("use_redis", False):
        logger.info("Using in-memory command queue")
        return InMemoryCommandQueue()
    try:
        queue = RedisCommandQueue()
    except (redis.RedisError, ValueError) as e:
        logger.error("Error initializing Redis queue", error=str(e))
        raise QueueUnavailableError(f"Cannot initialize Redis queue: {e}") from e
    if not await queue.health_check():
        await queue.close()
        logger.error("Redis is unreachable; refusing to start without the command queue")
        raise QueueUnavailableError("Redis is configured but unreachable")
    logger.info("Using Redis-backed command queue", key=queue.queue_key)
    return queue


__all__ = ["RedisCommandQueue", "QueueUnavailableError", "create_queue"]
