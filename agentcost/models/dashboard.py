"""Pydantic models for dashboard state and refresh settings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from agentcost.models.base import AgentCostBase


class TimeRange(str, Enum):
    last_24h = "24h"
    last_7d = "7d"
    last_30d = "30d"
    last_90d = "90d"


# ---------- Dashboard ----------

class DashboardSnapshot(AgentCostBase):
    time_range: TimeRange
    data: Any | None = None
    loading: bool
    error: str | None = None
    needs_onboarding: bool = False
    is_refreshing: bool
    last_refresh: datetime | None = None
    last_refresh_label: str
    auto_refresh_enabled: bool
    refresh_interval: int


class RefreshResult(DashboardSnapshot):
    refreshed: bool


# ---------- Settings ----------

class RefreshSettingsRead(AgentCostBase):
    auto_refresh: bool
    refresh_interval: int


class RefreshSettingsUpdate(AgentCostBase):
    auto_refresh: bool | None = None
    refresh_interval: int | None = Field(default=None, ge=1, le=86400)
