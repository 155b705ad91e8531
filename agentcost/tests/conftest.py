"""Fixtures for service and application tests."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from agentcost.api.client import ApiClient
from agentcost.config import Settings
from agentcost.dashboard import DashboardService
from agentcost.sync.preferences import ConfigStore

# Reuse the sync core's timer and clock fixtures
from agentcost.sync.tests.conftest import clock, timer  # noqa: F401

FULL_ANALYTICS = {
    "overview": {
        "total_cost": 42.5,
        "total_calls": 1200,
        "total_tokens": 950000,
        "avg_latency_ms": 812.4,
        "success_rate": 99.2,
    },
    "agents": [{"agent_name": "planner", "total_cost": 30.1}],
    "models": [{"model": "gpt-4o", "total_cost": 38.0}],
    "timeseries": [{"timestamp": "2026-02-23T09:00:00Z", "cost": 1.2}],
}


class FakeApi:
    """Programmable stand-in for the AgentCost API behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: bytes | None = None
        self.health_ok = True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/v1/health":
            if self.health_ok:
                return httpx.Response(200, json={"status": "ok"})
            return httpx.Response(503, content=b"unavailable")
        if self.status_code != 200:
            return httpx.Response(self.status_code, content=self.body or b"")
        return httpx.Response(200, json=FULL_ANALYTICS)

    def analytics_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/v1/analytics/full"]


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def app_settings(tmp_path: Path) -> Settings:
    return Settings(
        api_key="sk_test_123",
        api_base_url="https://api.agentcost.test",
        config_store_path=str(tmp_path / "config.yaml"),
        environment="test",
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def dashboard_factory(fake_api: FakeApi):
    """Build the dashboard service against ``fake_api`` instead of the network."""

    def factory(settings: Settings) -> DashboardService:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))
        client = ApiClient(
            base_url=settings.api_base_url,
            api_key=settings.api_key,
            http_client=http_client,
        )
        store = ConfigStore(settings.config_store_path, namespace=settings.config_namespace)
        return DashboardService(
            client,
            store,
            time_range=settings.default_time_range.value,
            default_auto_refresh=settings.default_auto_refresh,
            default_refresh_interval=settings.default_refresh_interval,
        )

    return factory
