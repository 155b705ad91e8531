"""Health check endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from agentcost.dependencies import AppSettings, Dashboard

router = APIRouter(tags=["system"])
logger = logging.getLogger("agentcost.health")


@router.get("/health")
async def health_check(settings: AppSettings, dashboard: Dashboard) -> dict:
    """Liveness probe. Returns 200 if the process is up.

    Also probes the AgentCost API's public health endpoint.
    """
    api_ok = False
    try:
        await dashboard.client.get_health()
        api_ok = True
    except Exception as exc:
        logger.warning("Health check API probe failed: %s", exc)

    return {
        "status": "healthy" if api_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "api": "reachable" if api_ok else "unreachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
