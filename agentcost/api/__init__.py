"""Client for the AgentCost analytics API."""

from agentcost.api.client import ApiClient
from agentcost.api.errors import ApiError, ApiNotConfiguredError, parse_api_error

__all__ = ["ApiClient", "ApiError", "ApiNotConfiguredError", "parse_api_error"]
