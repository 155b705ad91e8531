"""Human-readable ages for "last refreshed" and event timestamps."""

from __future__ import annotations

import math
from datetime import datetime, timezone


def _as_aware(value: datetime) -> datetime:
    # Naive timestamps come from the API in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _age_seconds(value: datetime, now: datetime | None) -> float:
    current = _as_aware(now) if now is not None else datetime.now(timezone.utc)
    return (current - _as_aware(value)).total_seconds()


def format_last_refresh(value: datetime | None, now: datetime | None = None) -> str:
    """Coarse age of the last refresh.

    >>> format_last_refresh(None)
    'Never'

    Thresholds: under 5s "Just now", under a minute "42s ago", under an hour
    "2m ago", under a day "3h ago"; anything older is shown as a local
    date and time.
    """
    if value is None:
        return "Never"

    diff = math.floor(_age_seconds(value, now))
    if diff < 5:
        return "Just now"
    if diff < 60:
        return f"{diff}s ago"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    return _as_aware(value).astimezone().strftime("%x %X")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an API timestamp; strings without an offset are taken as UTC."""
    if isinstance(value, datetime):
        return _as_aware(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _as_aware(datetime.fromisoformat(text))


def format_date(value: str | datetime) -> str:
    """Short date like ``Feb 23, 09:41 AM``."""
    return parse_timestamp(value).strftime("%b %d, %I:%M %p")


def format_relative_time(value: str | datetime, now: datetime | None = None) -> str:
    """Minute-granularity age used for event lists.

    "Just now" under a minute, then "5m ago", "3h ago", "2d ago" for up to a
    week; older timestamps fall back to ``format_date``.
    """
    moment = parse_timestamp(value)
    diff = _age_seconds(moment, now)
    minutes = math.floor(diff / 60)
    hours = math.floor(diff / 3600)
    days = math.floor(diff / 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return format_date(moment)


__all__ = [
    "format_date",
    "format_last_refresh",
    "format_relative_time",
    "parse_timestamp",
]
