"""Handles for long-running stream consumers."""

import asyncio
from typing import Awaitable, Callable, Optional

from dashboard.utils.log_utils import get_logger

logger = get_logger(__name__)


class StreamHandle:
    """
    Owns the task that consumes one event stream.

    `close()` cancels the task. `wait()` returns once the task is finished,
    whether it was closed, ran out of retries, or failed.
    """

    def __init__(self, name: str):
        self.name = name
        self.received = 0
        self.dropped = 0
        self.error: Optional[BaseException] = None
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def spawn(cls, name: str, consume: Callable[["StreamHandle"], Awaitable[None]]) -> "StreamHandle":
        handle = cls(name)
        handle._task = asyncio.ensure_future(consume(handle))
        return handle

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info(f"Stream closed: {self.name}")

    async def wait(self) -> None:
        if self._task is None:
            return
        await asyncio.wait({self._task})

    def __repr__(self) -> str:
        return (
            f"StreamHandle({self.name!r}, running={self.running}, "
            f"received={self.received}, dropped={self.dropped})"
        )
