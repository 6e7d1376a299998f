"""In-memory FIFO message queue (single-process).

Same interface as the Redis-backed queue so the worker does not care which
one it runs on. Used for tests and when Redis is disabled
(``USE_REDIS=false``). Messages are raw JSON bodies; ``receive`` removes the message,
which is the acknowledgement.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional, Protocol, Union

from command_sync.utils import get_logger

logger = get_logger(__name__)

MessageBody = Union[bytes, str]


class MessageQueueProtocol(Protocol):
    async def publish(self, payload: Any) -> None: ...
    async def receive(self, timeout: Optional[float] = None) -> Optional[MessageBody]: ...
    async def depth(self) -> int: ...
    async def purge(self) -> None: ...
    async def close(self) -> None: ...


def serialize_payload(payload: Any) -> MessageBody:
    if isinstance(payload, (bytes, str)):
        return payload
    return json.dumps(payload)


class InMemoryCommandQueue:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[MessageBody] = asyncio.Queue()
        self._closed = False

    async def publish(self, payload: Any) -> None:
        if self._closed:
            raise RuntimeError("Queue closed")
        await self._queue.put(serialize_payload(payload))

    async def receive(self, timeout: Optional[float] = None) -> Optional[MessageBody]:
        """Pop the next message; None if nothing arrived within ``timeout``."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    async def depth(self) -> int:
        return self._queue.qsize()

    async def purge(self) -> None:
        """Drop all pending messages (test isolation)."""
        while not self._queue.empty():
            self._queue.get_nowait()

    async def close(self) -> None:
        self._closed = True

    async def snapshot(self) -> dict:
        return {"depth": await self.depth(), "closed": self._closed, "redis_active": False}


__all__ = ["InMemoryCommandQueue", "MessageQueueProtocol", "MessageBody", "serialize_payload"]
