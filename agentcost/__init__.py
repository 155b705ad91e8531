"""AgentCost dashboard backend.

Keeps cost/usage analytics from the AgentCost API fresh for the dashboard:
fetches on demand, re-fetches on a timer, and remembers the user's refresh
preferences.

Subpackages:
    sync/    — Refresh scheduler, data-sync controller, preferences, formatting
    api/     — HTTP client for the AgentCost analytics API
    routers/ — FastAPI routes exposing dashboard state and settings
"""
