"""AgentCost dashboard backend: FastAPI application entry point.

Run locally:
    uvicorn agentcost.main:app --reload --port 3001
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentcost.api.client import ApiClient
from agentcost.config import Settings, get_settings
from agentcost.dashboard import DashboardService
from agentcost.middleware.security import SecurityHeadersMiddleware
from agentcost.routers import dashboard, health, settings as settings_router
from agentcost.sync.preferences import ConfigStore

logger = logging.getLogger("agentcost")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_dashboard_service(settings: Settings) -> DashboardService:
    """Wire the API client and config store from settings.

    The stored ``apiKey`` / ``baseUrl`` take precedence over the environment,
    matching what the settings page saves.
    """
    store = ConfigStore(settings.config_store_path, namespace=settings.config_namespace)
    overrides = store.load_api_settings()
    client = ApiClient(
        base_url=overrides.get("base_url", settings.api_base_url),
        api_key=overrides.get("api_key", settings.api_key),
        timeout=settings.api_timeout_seconds,
    )
    return DashboardService(
        client,
        store,
        time_range=settings.default_time_range.value,
        default_auto_refresh=settings.default_auto_refresh,
        default_refresh_interval=settings.default_refresh_interval,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    service: DashboardService = app.state.dashboard_factory(settings)
    service.start()
    app.state.dashboard = service
    try:
        yield
    finally:
        app.state.dashboard = None
        await service.close()
        logger.info("%s shut down", settings.app_name)


# ---------- App factory ----------

def create_app(
    settings: Settings | None = None,
    dashboard_factory=build_dashboard_service,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="AgentCost Dashboard API",
        description="Live cost and usage analytics for AI agents, kept fresh on a timer.",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dashboard_factory = dashboard_factory

    # ---------- Middleware (outermost first) ----------

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS innermost so it can handle preflight
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(dashboard.router, prefix=v1_prefix)
    app.include_router(settings_router.router, prefix=v1_prefix)

    return app


app = create_app()
