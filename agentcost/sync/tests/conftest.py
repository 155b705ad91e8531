"""Shared fixtures for the sync core: a hand-cranked timer, a frozen clock
and controllable fetch functions."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

# Canonical "now" for tests
TEST_NOW = datetime(2026, 2, 23, 9, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class ManualHandle:
    def __init__(self, due: float) -> None:
        self.due = due
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualTimer:
    """``Timer`` whose time only moves when a test calls ``advance()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        """Handles still waiting to fire, earliest first."""
        return sorted(
            (h for _, _, h, _ in self._queue if not h.cancelled()),
            key=lambda h: h.due,
        )

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every due callback in order.

        Returns:
            Number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled():
                continue
            callback()
            fired += 1
        self.now = target
        return fired


class FrozenClock:
    """Clock returning ``TEST_NOW`` plus however far a test moved it."""

    def __init__(self, start: datetime = TEST_NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def tick(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# ---------------------------------------------------------------------------
# Fetch functions
# ---------------------------------------------------------------------------


class GatedFetch:
    """Async fetch that blocks until released, counting calls and concurrency."""

    def __init__(self, result: Any = None) -> None:
        self.result = result
        self.error: Exception | None = None
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._gate = asyncio.Event()
        self._gate.set()

    def hold(self) -> None:
        """Make subsequent calls wait for ``release()``."""
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self) -> Any:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self._gate.wait()
            if self.error is not None:
                raise self.error
            return self.result
        finally:
            self.active -= 1


@pytest.fixture
def gated_fetch() -> GatedFetch:
    return GatedFetch(result={"value": 1})


async def settle(rounds: int = 5) -> None:
    """Let queued tasks run to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)
