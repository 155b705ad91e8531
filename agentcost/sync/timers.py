"""Cancellable "run after a delay" primitives for the refresh scheduler.

The scheduler never talks to the event loop directly.  It asks a ``Timer``
to run a callback after a number of seconds and keeps the returned
``TimerHandle`` so that it can cancel it on reconfiguration or teardown.

Usage::

    timer = LoopTimer()
    handle = timer.call_later(30, on_tick)
    ...
    handle.cancel()
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    """A pending callback that can be cancelled before it runs."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Timer(Protocol):
    """Schedules a plain callback to run once after ``delay`` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopTimer:
    """``Timer`` backed by the running asyncio event loop.

    The loop is resolved at scheduling time, so instances can be created
    outside of a coroutine but must be used from inside one.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)


__all__ = ["LoopTimer", "Timer", "TimerHandle"]
