"""Dashboard overview endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from agentcost.dependencies import Dashboard
from agentcost.models.dashboard import DashboardSnapshot, RefreshResult, TimeRange

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardSnapshot)
async def get_dashboard(
    dashboard: Dashboard,
    time_range: TimeRange | None = Query(default=None, alias="range"),
) -> Any:
    """Current overview state; selecting a new range starts a full reload."""
    if time_range is not None:
        dashboard.select_range(time_range.value)
    return dashboard.snapshot()


@router.post("/refresh", response_model=RefreshResult)
async def refresh_dashboard(dashboard: Dashboard) -> Any:
    """Refresh now.  ``refreshed`` is false if a refresh was already running."""
    refreshed = await dashboard.refresh()
    return {**dashboard.snapshot(), "refreshed": refreshed}
