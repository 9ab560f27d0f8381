"""Bounded-concurrency FIFO admission in front of the generation client.

One ``RequestQueue`` is built at startup and handed to every chat request.
At most ``concurrency`` tasks run their body at a time; the rest wait in
arrival order.  A finished task (success or failure) releases its slot to
the oldest waiter, so a late arrival can never overtake a queued one.

The queue does not time out, prioritise, retry or cancel tasks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["RequestQueue"]


class RequestQueue:
    def __init__(self, concurrency: int):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._concurrency = concurrency
        # asyncio.Semaphore wakes waiters in arrival order.
        self._semaphore = asyncio.Semaphore(concurrency)
        self._active = 0
        self._pending = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def active(self) -> int:
        """Tasks currently executing their body."""
        return self._active

    @property
    def pending(self) -> int:
        """Tasks waiting for a slot."""
        return self._pending

    async def submit(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run *task* once a slot is free and return (or raise) its own outcome."""
        self._pending += 1
        if self._semaphore.locked():
            logger.debug("Queued task (active=%d, pending=%d)", self._active, self._pending)
        try:
            await self._semaphore.acquire()
        finally:
            self._pending -= 1

        self._active += 1
        try:
            return await task()
        finally:
            self._active -= 1
            self._semaphore.release()
