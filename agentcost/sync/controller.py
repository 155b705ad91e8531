"""Lifecycle of one piece of remotely fetched dashboard state.

A ``DataSyncController`` wraps an async fetch function and keeps the last
good value around for a view to render:

    - ``data``    — last successfully fetched value; a failed fetch never
                    clears it (stale-but-available).
    - ``loading`` — True only while the fetch triggered by creation or by a
                    dependency change runs.
    - ``error``   — failure of the most recent fetch, cleared on success.

Periodic and manual reloads go through an owned ``RefreshScheduler``;
``is_refreshing``, ``last_refresh`` and ``refresh()`` are re-exported from it.

Usage::

    controller = DataSyncController(
        lambda: client.get_full_analytics(time_range),
        dependencies=(time_range,),
        auto_refresh_enabled=True,
        refresh_interval=30,
    )
    await controller.wait_loaded()
    controller.set_dependencies(("30d",))   # full reload
    controller.dispose()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from agentcost.sync.preferences import RefreshPreferences
from agentcost.sync.scheduler import (
    DEFAULT_REFRESH_INTERVAL,
    Clock,
    RefreshScheduler,
)
from agentcost.sync.timers import Timer

logger = logging.getLogger("agentcost.sync.controller")

T = TypeVar("T")


def dependencies_changed(old: Sequence[Any], new: Sequence[Any]) -> bool:
    """Return True if two dependency tuples differ.

    Elements are compared pairwise; an element is unchanged when it is the
    same object or compares equal.
    """
    if len(old) != len(new):
        return True
    return any(not (a is b or a == b) for a, b in zip(old, new))


class DataSyncController(Generic[T]):
    """Initial load, dependency-driven reload and periodic refresh of one value.

    Must be created inside a running event loop: the initial load starts
    immediately as a task.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        dependencies: Sequence[Any] = (),
        *,
        auto_refresh_enabled: bool = False,
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
        preferences: RefreshPreferences | None = None,
        timer: Timer | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the controller and start the first load.

        Args:
            fetch:                Zero-argument coroutine function returning T.
            dependencies:         Values whose change forces a full reload.
            auto_refresh_enabled: Default auto-refresh state for the scheduler.
            refresh_interval:     Default seconds between automatic refreshes.
            preferences:          Stored preferences overriding the two above.
            timer:                Timer passed through to the scheduler.
            clock:                Clock passed through to the scheduler.

        Raises:
            TypeError / ValueError: If ``refresh_interval`` is invalid.
        """
        self._fetch = fetch
        self._dependencies: tuple[Any, ...] = tuple(dependencies)
        self._data: T | None = None
        self._error: Exception | None = None
        self._loading = True
        self._load_generation = 0
        self._load_task: asyncio.Task | None = None
        self._disposed = False

        self._scheduler = RefreshScheduler(
            self._refresh_action,
            enabled=auto_refresh_enabled,
            interval=refresh_interval,
            preferences=preferences,
            timer=timer,
            clock=clock,
        )
        self._start_load()

    # ------------------------------------------------------------------
    # Exposed state
    # ------------------------------------------------------------------

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def is_refreshing(self) -> bool:
        return self._scheduler.is_refreshing

    @property
    def last_refresh(self) -> datetime | None:
        return self._scheduler.last_refresh

    @property
    def dependencies(self) -> tuple[Any, ...]:
        return self._dependencies

    @property
    def scheduler(self) -> RefreshScheduler:
        """The owned scheduler, for live auto-refresh changes."""
        return self._scheduler

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    async def refresh(self) -> bool:
        """Manual refresh through the scheduler (no-op while one is in flight)."""
        return await self._scheduler.refresh()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_dependencies(self, dependencies: Sequence[Any]) -> bool:
        """Replace the dependency tuple, reloading if it changed.

        Returns:
            True if a reload was started.
        """
        new = tuple(dependencies)
        if self._disposed or not dependencies_changed(self._dependencies, new):
            return False
        logger.debug("Dependencies changed %r -> %r; reloading", self._dependencies, new)
        self._dependencies = new
        self._start_load()
        return True

    async def wait_loaded(self) -> None:
        """Wait until the current dependency-triggered load has settled."""
        while True:
            task = self._load_task
            if task is None or task.done():
                return
            await asyncio.wait({task})

    def dispose(self) -> None:
        """Tear down: cancel pending ticks and ignore any later fetch outcome."""
        if self._disposed:
            return
        self._disposed = True
        self._scheduler.dispose()
        logger.debug("Data sync controller disposed")

    def snapshot(self) -> dict[str, Any]:
        """Return the consumer-facing state as a plain dict."""
        return {
            "data": self._data,
            "loading": self._loading,
            "error": self._error,
            "is_refreshing": self.is_refreshing,
            "last_refresh": self.last_refresh,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_load(self) -> None:
        self._load_generation += 1
        self._loading = True
        self._load_task = asyncio.get_running_loop().create_task(
            self._load(self._load_generation)
        )

    async def _load(self, generation: int) -> None:
        try:
            await self._fetch_and_apply(generation)
        except Exception as exc:
            logger.warning("Load failed (keeping previous data): %s", exc)
        finally:
            # Only the latest load may clear the flag
            if generation == self._load_generation and not self._disposed:
                self._loading = False

    async def _refresh_action(self) -> None:
        # Pin the generation before the fetch suspends; a dependency change
        # while it runs makes the result stale.
        await self._fetch_and_apply(self._load_generation)

    async def _fetch_and_apply(self, generation: int) -> None:
        """Fetch once and apply the outcome if ``generation`` is still current.

        Failures are recorded on ``error`` and re-raised so the scheduler can
        log them and keep its own ``last_error``.
        """
        try:
            result = await self._fetch()
        except Exception as exc:
            if self._is_current(generation):
                self._error = exc
            raise
        if self._is_current(generation):
            self._data = result
            self._error = None

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._load_generation


__all__ = ["DataSyncController", "dependencies_changed"]
