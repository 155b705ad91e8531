"""Auto-refresh scheduler for dashboard data.

Runs a caller-supplied async refresh action every ``refresh_interval``
seconds while auto-refresh is enabled, and on demand through ``refresh()``.

Guarantees:
    - At most one invocation of the action is in flight at any time.  A tick
      that arrives while one is running is skipped (not queued); a manual
      ``refresh()`` issued meanwhile is a no-op.
    - Ticks follow a fixed cadence: the next tick is armed when the current
      one fires, so a slow action never stretches the interval.
    - Changing ``auto_refresh_enabled`` or ``refresh_interval`` cancels the
      pending tick and re-arms from the moment of the change.
    - Action failures are logged and kept in ``last_error``; they never reach
      the caller and never stop later ticks.
    - After ``dispose()`` no tick takes effect, not even one already queued
      on the event loop.

Usage::

    scheduler = RefreshScheduler(
        on_refresh=reload_overview,
        enabled=True,
        interval=30,
        preferences=store.load_preferences(),
    )
    await scheduler.refresh()           # manual refresh
    scheduler.set_refresh_interval(60)  # live reconfiguration
    scheduler.dispose()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from agentcost.sync.preferences import RefreshPreferences
from agentcost.sync.timers import LoopTimer, Timer, TimerHandle

logger = logging.getLogger("agentcost.sync.scheduler")

DEFAULT_REFRESH_INTERVAL = 30  # seconds

RefreshAction = Callable[[], Awaitable[Any]]
Clock = Callable[[], datetime]


class SchedulerState(str, Enum):
    idle = "idle"
    scheduled = "scheduled"
    running = "running"
    disposed = "disposed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_interval(interval: Any) -> int:
    """Check a refresh interval and return it.

    ``0`` is allowed and means "never tick".

    Raises:
        TypeError:  If ``interval`` is not an int (bools are rejected).
        ValueError: If ``interval`` is negative.
    """
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise TypeError(f"refresh interval must be an int, got {interval!r}")
    if interval < 0:
        raise ValueError(f"refresh interval must be >= 0 seconds, got {interval}")
    return interval


class RefreshScheduler:
    """Timer lifecycle plus the at-most-one-in-flight refresh guard.

    When auto-refresh is enabled the first tick is armed immediately, which
    requires a running event loop unless a custom ``timer`` is supplied.
    """

    def __init__(
        self,
        on_refresh: RefreshAction | None = None,
        *,
        enabled: bool = False,
        interval: int = DEFAULT_REFRESH_INTERVAL,
        preferences: RefreshPreferences | None = None,
        timer: Timer | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            on_refresh:  Zero-argument coroutine function run on every refresh.
            enabled:     Default auto-refresh state.
            interval:    Default seconds between ticks.
            preferences: Stored user preferences; each set field overrides
                         the matching default above.
            timer:       ``Timer`` used to arm ticks (``LoopTimer`` by default).
            clock:       Returns the current aware datetime (UTC by default).
        """
        if preferences is not None:
            if preferences.auto_refresh is not None:
                enabled = preferences.auto_refresh
            if preferences.refresh_interval is not None:
                interval = preferences.refresh_interval

        self._on_refresh = on_refresh
        self._enabled = bool(enabled)
        self._interval = validate_interval(interval)
        self._timer: Timer = timer or LoopTimer()
        self._clock: Clock = clock or utc_now

        self._handle: TimerHandle | None = None
        self._generation = 0
        self._in_flight = False
        self._last_refresh: datetime | None = None
        self._last_error: Exception | None = None
        self._tick_task: asyncio.Task | None = None
        self._disposed = False

        self._reschedule()

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def is_refreshing(self) -> bool:
        return self._in_flight

    @property
    def last_refresh(self) -> datetime | None:
        return self._last_refresh

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def auto_refresh_enabled(self) -> bool:
        return self._enabled

    @property
    def refresh_interval(self) -> int:
        return self._interval

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def state(self) -> SchedulerState:
        if self._disposed:
            return SchedulerState.disposed
        if self._in_flight:
            return SchedulerState.running
        if self._handle is not None:
            return SchedulerState.scheduled
        return SchedulerState.idle

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_auto_refresh_enabled(self, enabled: bool) -> None:
        """Turn periodic refresh on or off, re-arming the timer as needed."""
        enabled = bool(enabled)
        if enabled == self._enabled:
            return
        self._enabled = enabled
        logger.debug("Auto-refresh %s", "enabled" if enabled else "disabled")
        self._reschedule()

    def set_refresh_interval(self, interval: int) -> None:
        """Change the cadence; the next tick is due ``interval`` seconds from now.

        Raises:
            TypeError:  If ``interval`` is not an int.
            ValueError: If ``interval`` is negative.
        """
        interval = validate_interval(interval)
        if interval == self._interval:
            return
        self._interval = interval
        logger.debug("Refresh interval set to %ds", interval)
        self._reschedule()

    # ------------------------------------------------------------------
    # Refreshing
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Run the refresh action now.

        Works whether or not auto-refresh is enabled.

        Returns:
            True if the action ran, False if it was skipped because another
            invocation is in flight or the scheduler is disposed.
        """
        if self._disposed:
            logger.debug("Manual refresh ignored: scheduler disposed")
            return False
        if not self._try_begin():
            logger.debug("Manual refresh skipped: refresh already in flight")
            return False
        await self._execute()
        return True

    async def wait_idle(self) -> None:
        """Wait for a tick-triggered refresh to finish, if one is running."""
        task = self._tick_task
        if task is not None and not task.done():
            await task

    def dispose(self) -> None:
        """Cancel any pending tick.  Further ticks never take effect.

        An invocation already in flight still completes its bookkeeping but
        does not re-arm the timer.  Calling this more than once is harmless.
        """
        if self._disposed:
            return
        self._disposed = True
        self._cancel_pending()
        logger.debug("Refresh scheduler disposed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _try_begin(self) -> bool:
        # Synchronous check-and-set: nothing can interleave between the two
        if self._in_flight:
            return False
        self._in_flight = True
        return True

    async def _execute(self) -> None:
        # Caller must hold the in-flight guard
        try:
            await self._invoke()
            self._last_refresh = self._clock()
        finally:
            self._in_flight = False

    async def _invoke(self) -> None:
        if self._on_refresh is None:
            self._last_error = None
            return
        try:
            await self._on_refresh()
        except Exception as exc:
            self._last_error = exc
            logger.warning("Refresh failed: %s", exc)
        else:
            self._last_error = None

    def _cancel_pending(self) -> None:
        # Bumping the generation invalidates a callback the loop already queued
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _reschedule(self) -> None:
        self._cancel_pending()
        if self._disposed or not self._enabled or self._interval <= 0:
            return
        generation = self._generation
        self._handle = self._timer.call_later(
            self._interval, lambda: self._on_tick(generation)
        )

    def _on_tick(self, generation: int) -> None:
        if self._disposed or generation != self._generation:
            return
        self._handle = None
        self._reschedule()

        if not self._try_begin():
            logger.debug("Tick skipped: refresh already in flight")
            return
        task = asyncio.get_running_loop().create_task(self._execute())
        self._tick_task = task


__all__ = [
    "DEFAULT_REFRESH_INTERVAL",
    "RefreshAction",
    "RefreshScheduler",
    "SchedulerState",
    "utc_now",
    "validate_interval",
]
