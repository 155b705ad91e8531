"""Persisted auto-refresh preferences.

The dashboard keeps the user's refresh settings in a small YAML file, under a
single application namespace so that other settings (API key, base URL,
project) can live next to them::

    agentcost_config:
      apiKey: sk_live_...
      baseUrl: https://api.example.com
      autoRefresh: true
      refreshInterval: 60

Reading is forgiving: a missing file, a YAML error, a non-mapping namespace
or a field of the wrong type is ignored and the caller's defaults win.  The
refresh core itself never touches the store; the call site loads a
``RefreshPreferences`` and passes it into the scheduler.

Usage::

    store = ConfigStore(Path("agentcost_config.yaml"))
    prefs = store.load_preferences()          # RefreshPreferences(auto_refresh=True, ...)
    store.save_preferences(prefs.merged_with(refresh_interval=120))
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("agentcost.sync.preferences")

DEFAULT_NAMESPACE = "agentcost_config"

# Keys inside the namespace, named the way the web settings page stores them
AUTO_REFRESH_KEY = "autoRefresh"
REFRESH_INTERVAL_KEY = "refreshInterval"
API_KEY_KEY = "apiKey"
BASE_URL_KEY = "baseUrl"


# ---------------------------------------------------------------------------
# Typed preferences
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefreshPreferences:
    """User refresh preferences as read from the store.

    A field left as ``None`` means "not stored"; the scheduler then keeps its
    own constructor default for it.

    Attributes:
        auto_refresh:     Whether periodic refresh is on.
        refresh_interval: Seconds between automatic refreshes (> 0).
    """

    auto_refresh: bool | None = None
    refresh_interval: int | None = None

    def merged_with(
        self,
        auto_refresh: bool | None = None,
        refresh_interval: int | None = None,
    ) -> RefreshPreferences:
        """Return a copy with the given (non-None) fields replaced."""
        return RefreshPreferences(
            auto_refresh=self.auto_refresh if auto_refresh is None else auto_refresh,
            refresh_interval=(
                self.refresh_interval if refresh_interval is None else refresh_interval
            ),
        )

    def to_mapping(self) -> dict[str, Any]:
        """Return the stored representation, omitting unset fields."""
        out: dict[str, Any] = {}
        if self.auto_refresh is not None:
            out[AUTO_REFRESH_KEY] = self.auto_refresh
        if self.refresh_interval is not None:
            out[REFRESH_INTERVAL_KEY] = self.refresh_interval
        return out


def preferences_from_mapping(raw: dict[str, Any]) -> RefreshPreferences:
    """Build preferences from a namespace mapping, dropping malformed fields.

    ``autoRefresh`` must be a real bool.  ``refreshInterval`` must be a
    positive integer; bools and floats are rejected.

    Args:
        raw: The namespace mapping (may contain unrelated keys).

    Returns:
        RefreshPreferences with only the well-formed fields set.
    """
    auto_refresh = raw.get(AUTO_REFRESH_KEY)
    if not isinstance(auto_refresh, bool):
        if auto_refresh is not None:
            logger.debug("Ignoring malformed %s=%r", AUTO_REFRESH_KEY, auto_refresh)
        auto_refresh = None

    interval = raw.get(REFRESH_INTERVAL_KEY)
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        if interval is not None:
            logger.debug("Ignoring malformed %s=%r", REFRESH_INTERVAL_KEY, interval)
        interval = None

    return RefreshPreferences(auto_refresh=auto_refresh, refresh_interval=interval)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ConfigStore:
    """YAML-file key-value store scoped to one application namespace."""

    def __init__(self, path: Path | str, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.path = Path(path)
        self.namespace = namespace

    def _load_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                doc = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read config store %s: %s", self.path, exc)
            return {}
        if not isinstance(doc, dict):
            return {}
        return doc

    def load_namespace(self) -> dict[str, Any]:
        """Return the raw namespace mapping, or ``{}`` if absent or malformed."""
        section = self._load_document().get(self.namespace)
        if not isinstance(section, dict):
            return {}
        return dict(section)

    def load_preferences(self) -> RefreshPreferences:
        """Return the stored refresh preferences (unset fields are ``None``)."""
        return preferences_from_mapping(self.load_namespace())

    def load_api_settings(self) -> dict[str, str]:
        """Return stored ``api_key`` / ``base_url`` overrides, if any."""
        section = self.load_namespace()
        out: dict[str, str] = {}
        api_key = section.get(API_KEY_KEY)
        if isinstance(api_key, str) and api_key:
            out["api_key"] = api_key
        base_url = section.get(BASE_URL_KEY)
        if isinstance(base_url, str) and base_url:
            out["base_url"] = base_url
        return out

    def save_preferences(self, prefs: RefreshPreferences) -> None:
        """Merge ``prefs`` into the namespace and write the file.

        Other keys of the namespace and other namespaces are preserved.  The
        file is replaced atomically so a crash never leaves half a document.

        Raises:
            OSError: If the file cannot be written.
        """
        doc = self._load_document()
        section = doc.get(self.namespace)
        if not isinstance(section, dict):
            section = {}
        section.update(prefs.to_mapping())
        doc[self.namespace] = section

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(doc, fh, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Saved refresh preferences to %s: %s", self.path, prefs.to_mapping())


__all__ = [
    "ConfigStore",
    "DEFAULT_NAMESPACE",
    "RefreshPreferences",
    "preferences_from_mapping",
]
