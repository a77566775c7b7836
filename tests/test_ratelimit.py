"""Unit tests for the start-rate limiter."""

import asyncio

import pytest

from dotenv_azure.ratelimit import RateLimiter

INTERVAL = 0.02
# Tolerance for loop clock reads taken around the admission point.
EPSILON = 0.002


class TestRateLimiter:
    async def test_first_start_is_immediate(self):
        """
        Given a fresh limiter with a long interval
        When acquire is called once
        Then it returns without waiting
        """
        limiter = RateLimiter(10)
        await asyncio.wait_for(limiter.acquire(), timeout=1)

    async def test_starts_are_spaced_by_interval(self):
        """
        Given a limiter and many concurrent acquirers
        When they all acquire
        Then consecutive admitted start times are at least the interval apart
        """
        limiter = RateLimiter(INTERVAL)
        starts = sorted(await asyncio.gather(*(limiter.acquire() for _ in range(6))))
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= INTERVAL - 1e-9 for gap in gaps)

    async def test_scheduled_tasks_overlap(self):
        """
        Given tasks that each run longer than the interval
        When they are scheduled concurrently
        Then more than one is in flight at the same time
        """
        limiter = RateLimiter(0.001)
        in_flight = 0
        peak = 0

        async def task() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1

        await asyncio.gather(*(limiter.schedule(task) for _ in range(4)))
        assert peak > 1

    async def test_schedule_returns_result(self):
        """
        Given a coroutine function returning a value
        When it is scheduled
        Then schedule returns that value
        """

        async def task() -> str:
            return "done"

        assert await RateLimiter(0).schedule(task) == "done"

    async def test_task_start_times_respect_interval(self):
        """
        Given scheduled tasks recording when they start
        When they run
        Then no two starts are closer than the interval
        """
        limiter = RateLimiter(INTERVAL)
        loop = asyncio.get_running_loop()
        starts: list[float] = []

        async def task() -> None:
            starts.append(loop.time())

        await asyncio.gather(*(limiter.schedule(task) for _ in range(5)))
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= INTERVAL - EPSILON for gap in gaps)

    def test_negative_interval_is_rejected(self):
        """
        Given a negative interval
        When a RateLimiter is constructed
        Then ValueError is raised
        """
        with pytest.raises(ValueError):
            RateLimiter(-1)
