"""AgentCost analytics API client.

Thin async wrapper over ``httpx``.  Analytics, events and project endpoints
authenticate with the project API key as a bearer token; ``/health`` is
public.  Payloads are returned as decoded JSON, unmodified.

Environment / settings:
    AGENTCOST_API_BASE_URL — API root (default http://localhost:8000)
    AGENTCOST_API_KEY      — Project API key (the config store may override)

Endpoints used:
    /v1/health                — Liveness
    /v1/analytics/overview    — Totals and averages for a time range
    /v1/analytics/agents      — Per-agent breakdown
    /v1/analytics/models      — Per-model breakdown
    /v1/analytics/timeseries  — Cost/calls/tokens over time
    /v1/analytics/full        — All of the above in one call
    /v1/events                — Raw LLM call events
    /v1/events/count          — Total event count
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from agentcost.api.errors import ApiError, ApiNotConfiguredError

logger = logging.getLogger("agentcost.api.client")

DEFAULT_API_BASE_URL = "http://localhost:8000"


class ApiClient:
    """Client for the AgentCost analytics API."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        api_key: str = "",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url:    API root, without a trailing slash.
            api_key:     Project API key used for analytics endpoints.
            timeout:     Request timeout in seconds for the owned client.
            http_client: Optional pre-configured httpx client (for testing).
                         Not closed by ``aclose()``.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    def is_configured(self) -> bool:
        """True if an API key is set."""
        return bool(self.api_key)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_health(self) -> dict[str, Any]:
        return await self._request("GET", "/v1/health", auth=False)

    async def get_overview(self, time_range: str = "7d") -> dict[str, Any]:
        return await self._request("GET", "/v1/analytics/overview", params={"range": time_range})

    async def get_agent_stats(self, time_range: str = "7d") -> list[dict[str, Any]]:
        return await self._request("GET", "/v1/analytics/agents", params={"range": time_range})

    async def get_model_stats(self, time_range: str = "7d") -> list[dict[str, Any]]:
        return await self._request("GET", "/v1/analytics/models", params={"range": time_range})

    async def get_time_series(self, time_range: str = "7d") -> list[dict[str, Any]]:
        return await self._request(
            "GET", "/v1/analytics/timeseries", params={"range": time_range}
        )

    async def get_events(self, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        return await self._request(
            "GET", "/v1/events", params={"limit": limit, "offset": offset}
        )

    async def get_event_count(self) -> dict[str, Any]:
        return await self._request("GET", "/v1/events/count")

    async def get_full_analytics(self, time_range: str = "7d") -> dict[str, Any]:
        """Overview, agents, models and timeseries for ``time_range`` in one call."""
        return await self._request("GET", "/v1/analytics/full", params={"range": time_range})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_headers(self, auth: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> Any:
        """Make a request to the AgentCost API.

        Args:
            method: HTTP method.
            path:   Endpoint path beginning with ``/``.
            params: Query parameters.
            auth:   Send the API key as a bearer token.

        Returns:
            Decoded JSON body, or None for 204 responses.

        Raises:
            ApiNotConfiguredError: If ``auth`` is set but no API key is configured.
            ApiError:              On non-2xx responses.
            httpx.HTTPError:       On transport failures.
        """
        if auth and not self.is_configured():
            raise ApiNotConfiguredError()

        url = f"{self.base_url}{path}"
        response = await self._http_client.request(
            method, url, params=params, headers=self._build_headers(auth)
        )

        if response.is_error:
            logger.debug("%s %s -> %d", method, path, response.status_code)
            raise ApiError(response.status_code, response.reason_phrase, response.text)
        if response.status_code == 204:
            return None
        return response.json()


__all__ = ["ApiClient", "DEFAULT_API_BASE_URL"]
