"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from agentcost.models.dashboard import TimeRange


class Settings(BaseSettings):
    """All configuration is loaded from ``AGENTCOST_*`` environment variables (or .env)."""

    # --- App ---
    app_name: str = "AgentCost Dashboard"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- AgentCost API ---
    api_base_url: str = "http://localhost:8000"
    api_key: str = ""  # project key; the config store may override it
    api_timeout_seconds: float = 30.0

    # --- Refresh preferences ---
    config_store_path: str = "agentcost_config.yaml"
    config_namespace: str = "agentcost_config"
    default_auto_refresh: bool = False
    default_refresh_interval: int = 30  # seconds
    default_time_range: TimeRange = TimeRange.last_7d

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_prefix="AGENTCOST_", env_file=".env", env_file_encoding="utf-8"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
