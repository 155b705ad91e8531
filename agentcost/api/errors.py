"""API error types and user-facing error messages.

``parse_api_error`` turns whatever a fetch raised into one short sentence a
dashboard can show.  It understands the error bodies the AgentCost API sends:

    - validation errors:  ``{"detail": [{"msg": ..., "ctx": {"reason": ...}}]}``
    - simple errors:      ``{"detail": "Invalid API key"}``
    - bare HTTP statuses (401, 403)
"""

from __future__ import annotations

import json
import re
from typing import Any

SESSION_EXPIRED_MESSAGE = (
    "Your session has expired. This usually happens after 7 days of "
    "inactivity. Please log out and log back in."
)
FORBIDDEN_MESSAGE = "You don't have permission to perform this action."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."
NOT_CONFIGURED_MESSAGE = "API key is not configured. Add one in Settings."

# Substring of the API's detail -> friendlier message
_FRIENDLY_DETAILS: list[tuple[str, str]] = [
    ("don't have access", "You don't have access to this project."),
    ("Invalid or expired token", SESSION_EXPIRED_MESSAGE),
    ("Email not verified", "Please verify your email address before logging in."),
    ("Invalid email or password", "Invalid email or password. Please try again."),
]

_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)
_PREFIX_RE = re.compile(r"^API Error:\s*", re.IGNORECASE)
_STATUS_RE = re.compile(
    r"^\d{3}\s+(Bad Request|Unauthorized|Forbidden|Not Found|"
    r"Unprocessable Content|Unprocessable Entity)\s*-\s*",
    re.IGNORECASE,
)


class ApiError(Exception):
    """Non-2xx response from the AgentCost API."""

    def __init__(self, status_code: int, reason: str = "", body: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        message = f"API Error: {status_code} {reason}".rstrip()
        if body:
            message += f" - {body}"
        super().__init__(message)


class ApiNotConfiguredError(Exception):
    """Raised when an analytics endpoint is called without an API key."""

    def __init__(self, message: str = NOT_CONFIGURED_MESSAGE) -> None:
        super().__init__(message)


def _error_payload(err: Exception) -> Any:
    """Decode the JSON error body carried by ``err``, if there is one."""
    if isinstance(err, ApiError):
        raw = err.body
    else:
        # Other exceptions may embed the body in their message
        match = _JSON_RE.search(str(err))
        raw = match.group(0) if match else ""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _validation_messages(detail: list[Any]) -> str:
    messages: list[str] = []
    for item in detail:
        if not isinstance(item, dict):
            messages.append("Invalid input")
            continue
        reason = (item.get("ctx") or {}).get("reason")
        if reason:
            messages.append(str(reason))
        elif item.get("msg"):
            messages.append(
                str(item["msg"]).replace("value is not a valid email address: ", "", 1)
            )
        else:
            messages.append("Invalid input")
    return ". ".join(messages)


def parse_api_error(err: object) -> str:
    """Return a user-facing message for a failed API call.

    Args:
        err: The exception raised by the fetch (anything else is "unexpected").

    Returns:
        A short, display-ready sentence.
    """
    if isinstance(err, ApiNotConfiguredError):
        return NOT_CONFIGURED_MESSAGE
    if not isinstance(err, Exception):
        return UNEXPECTED_MESSAGE

    message = str(err)

    payload = _error_payload(err)
    detail = payload.get("detail") if isinstance(payload, dict) else None
    if isinstance(detail, list) and detail:
        return _validation_messages(detail)
    if isinstance(detail, str) and detail:
        for needle, friendly in _FRIENDLY_DETAILS:
            if needle in detail:
                return friendly
        return detail

    status = getattr(err, "status_code", None)
    if status == 401 or "401" in message:
        return SESSION_EXPIRED_MESSAGE
    if status == 403 or "403" in message:
        return FORBIDDEN_MESSAGE

    cleaned = _STATUS_RE.sub("", _PREFIX_RE.sub("", message))
    return cleaned or message or UNEXPECTED_MESSAGE


def is_auth_error(message: str) -> bool:
    """True if a parsed message means the API key is missing or rejected."""
    return (
        "401" in message
        or "Invalid API key" in message
        or "session has expired" in message
        or message == NOT_CONFIGURED_MESSAGE
    )


__all__ = [
    "ApiError",
    "ApiNotConfiguredError",
    "is_auth_error",
    "parse_api_error",
]
