"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from agentcost.config import Settings
from agentcost.dashboard import DashboardService


def get_app_settings(request: Request) -> Settings:
    """Return the settings the app was created with."""
    return request.app.state.settings


async def get_dashboard_service(request: Request) -> DashboardService:
    """Return the dashboard service created by the app lifespan."""
    service: DashboardService | None = getattr(request.app.state, "dashboard", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Dashboard sync not running")
    return service


# Annotated shortcuts for route signatures
Dashboard = Annotated[DashboardService, Depends(get_dashboard_service)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
