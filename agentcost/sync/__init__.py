"""Dashboard data synchronization core.

Modules:
    timers      — Cancellable "run after a delay" handles
    scheduler   — Auto-refresh timer with the at-most-one-in-flight guard
    controller  — Initial load, dependency reload and stale-but-available state
    preferences — Persisted auto-refresh preferences (YAML config store)
    formatting  — "Last refreshed" and relative-time labels
"""

from agentcost.sync.controller import DataSyncController
from agentcost.sync.formatting import format_last_refresh, format_relative_time
from agentcost.sync.preferences import ConfigStore, RefreshPreferences
from agentcost.sync.scheduler import RefreshScheduler, SchedulerState
from agentcost.sync.timers import LoopTimer, Timer, TimerHandle

__all__ = [
    "ConfigStore",
    "DataSyncController",
    "LoopTimer",
    "RefreshPreferences",
    "RefreshScheduler",
    "SchedulerState",
    "Timer",
    "TimerHandle",
    "format_last_refresh",
    "format_relative_time",
]
