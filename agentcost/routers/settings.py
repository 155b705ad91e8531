"""Auto-refresh settings endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from agentcost.dependencies import Dashboard
from agentcost.models.dashboard import RefreshSettingsRead, RefreshSettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger("agentcost.routers.settings")


@router.get("/refresh", response_model=RefreshSettingsRead)
async def get_refresh_settings(dashboard: Dashboard) -> Any:
    return dashboard.preferences()


@router.put("/refresh", response_model=RefreshSettingsRead)
async def update_refresh_settings(dashboard: Dashboard, body: RefreshSettingsUpdate) -> Any:
    try:
        prefs = dashboard.update_preferences(
            auto_refresh=body.auto_refresh,
            refresh_interval=body.refresh_interval,
        )
    except OSError as exc:
        logger.error("Failed to save refresh settings: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save") from exc
    return prefs
