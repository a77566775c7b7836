"""Start-rate limiter for asyncio tasks."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class RateLimiter:
    """Admits task starts no closer together than ``min_interval`` seconds.

    Only the initiation rate is limited; admitted tasks run concurrently and
    may overlap.  Waiters are admitted in arrival order.
    """

    def __init__(self, min_interval: float) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.min_interval = min_interval
        self._lock = asyncio.Lock()
        self._next_start: float | None = None

    async def acquire(self) -> float:
        """Wait for the next free slot and return its start time (loop clock)."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            while self._next_start is not None and now < self._next_start:
                await asyncio.sleep(self._next_start - now)
                now = loop.time()
            self._next_start = now + self.min_interval
            return now

    async def schedule(self, func: Callable[[], Awaitable[T]]) -> T:
        """Run ``func`` once a start slot is free."""
        await self.acquire()
        return await func()
