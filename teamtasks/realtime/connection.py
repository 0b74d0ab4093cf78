from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SendFn = Callable[[dict[str, Any]], Awaitable[None]]

DEFAULT_MAX_QUEUE = 100


class ClientConnection:
    """
    One live real-time session.

    Messages are queued by `push` and written by `run`, one at a time, in
    the order they were pushed. `push` never waits on the network.
    """

    def __init__(self, send: SendFn, label: str = "", max_queue: int = DEFAULT_MAX_QUEUE) -> None:
        self._send = send
        self.label = label
        self._max_queue = max_queue
        self._queue: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, message: dict[str, Any]) -> bool:
        if self._closed:
            return False
        if self._queue.qsize() >= self._max_queue:
            logger.warning("Outbound queue full, dropping %s for %s", message.get("event"), self.label)
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        """Stop accepting messages; `run` returns once the queue ahead of it is written."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def run(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            try:
                await self._send(message)
            except Exception as e:
                # peer went away; whatever is still queued is dropped
                logger.debug("Send failed for %s: %s", self.label, e)
                self._closed = True
                return
