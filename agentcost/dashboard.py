"""Dashboard overview state kept fresh for the HTTP layer.

``DashboardService`` is the consumer of the sync core: it owns one
``DataSyncController`` whose fetch loads the full analytics bundle for the
selected time range, reloads it when the range changes, and persists refresh
preference changes through the ``ConfigStore``.
"""

from __future__ import annotations

import logging
from typing import Any

from agentcost.api.client import ApiClient
from agentcost.api.errors import is_auth_error, parse_api_error
from agentcost.sync.controller import DataSyncController
from agentcost.sync.formatting import format_last_refresh
from agentcost.sync.preferences import ConfigStore, RefreshPreferences
from agentcost.sync.scheduler import DEFAULT_REFRESH_INTERVAL, Clock, validate_interval
from agentcost.sync.timers import Timer

logger = logging.getLogger("agentcost.dashboard")


class DashboardService:
    """Analytics overview for one dashboard, with auto-refresh.

    Usage::

        service = DashboardService(client, store)
        service.start()                 # inside the event loop
        service.select_range("30d")
        state = service.snapshot()
        await service.close()
    """

    def __init__(
        self,
        client: ApiClient,
        store: ConfigStore,
        *,
        time_range: str = "7d",
        default_auto_refresh: bool = False,
        default_refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
        timer: Timer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._time_range = time_range
        self._default_auto_refresh = default_auto_refresh
        self._default_refresh_interval = default_refresh_interval
        self._timer = timer
        self._clock = clock
        self._controller: DataSyncController[dict[str, Any]] | None = None

    @property
    def controller(self) -> DataSyncController[dict[str, Any]]:
        if self._controller is None:
            raise RuntimeError("DashboardService not started; call start() first")
        return self._controller

    @property
    def client(self) -> ApiClient:
        return self._client

    @property
    def time_range(self) -> str:
        return self._time_range

    def start(self) -> None:
        """Create the controller (first load starts immediately)."""
        if self._controller is not None:
            return
        preferences = self._store.load_preferences()
        self._controller = DataSyncController(
            self._fetch,
            dependencies=(self._time_range,),
            auto_refresh_enabled=self._default_auto_refresh,
            refresh_interval=self._default_refresh_interval,
            preferences=preferences,
            timer=self._timer,
            clock=self._clock,
        )
        scheduler = self._controller.scheduler
        logger.info(
            "Dashboard sync started (range=%s, auto_refresh=%s, interval=%ds)",
            self._time_range,
            scheduler.auto_refresh_enabled,
            scheduler.refresh_interval,
        )

    async def _fetch(self) -> dict[str, Any]:
        return await self._client.get_full_analytics(self._time_range)

    def select_range(self, time_range: str) -> bool:
        """Switch the time range; a change triggers a full reload."""
        self._time_range = time_range
        return self.controller.set_dependencies((time_range,))

    async def refresh(self) -> bool:
        return await self.controller.refresh()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def preferences(self) -> RefreshPreferences:
        scheduler = self.controller.scheduler
        return RefreshPreferences(
            auto_refresh=scheduler.auto_refresh_enabled,
            refresh_interval=scheduler.refresh_interval,
        )

    def update_preferences(
        self,
        auto_refresh: bool | None = None,
        refresh_interval: int | None = None,
    ) -> RefreshPreferences:
        """Persist new preferences, then apply them live.

        Nothing changes on the running scheduler unless the store write
        succeeds.

        Raises:
            TypeError / ValueError: If ``refresh_interval`` is invalid.
            OSError:                If the config store cannot be written.
        """
        if refresh_interval is not None:
            refresh_interval = validate_interval(refresh_interval)
        prefs = self.preferences().merged_with(
            auto_refresh=None if auto_refresh is None else bool(auto_refresh),
            refresh_interval=refresh_interval,
        )
        self._store.save_preferences(prefs)

        scheduler = self.controller.scheduler
        scheduler.set_refresh_interval(prefs.refresh_interval)
        scheduler.set_auto_refresh_enabled(prefs.auto_refresh)
        return prefs

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Consumer-facing dashboard state, JSON-ready apart from datetimes."""
        controller = self.controller
        scheduler = controller.scheduler

        error_message: str | None = None
        needs_onboarding = not self._client.is_configured()
        if controller.error is not None:
            error_message = parse_api_error(controller.error)
            if is_auth_error(error_message):
                needs_onboarding = True
                error_message = None

        return {
            "time_range": self._time_range,
            "data": controller.data,
            "loading": controller.loading,
            "error": error_message,
            "needs_onboarding": needs_onboarding,
            "is_refreshing": controller.is_refreshing,
            "last_refresh": controller.last_refresh,
            "last_refresh_label": format_last_refresh(
                controller.last_refresh, now=self._clock() if self._clock else None
            ),
            "auto_refresh_enabled": scheduler.auto_refresh_enabled,
            "refresh_interval": scheduler.refresh_interval,
        }

    async def close(self) -> None:
        """Dispose the controller and release the HTTP client."""
        if self._controller is not None:
            self._controller.dispose()
            await self._controller.scheduler.wait_idle()
        await self._client.aclose()
        logger.info("Dashboard sync stopped")


__all__ = ["DashboardService"]
