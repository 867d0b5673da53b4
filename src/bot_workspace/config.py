"""Configuration and environment loading for Bot Workspace."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bot backend
    bot_api_url: str = "https://birstbd-conf-bt.onrender.com"
    bot_request_timeout: float = 120.0  # Cold starts can take over a minute

    # Workspace timing
    status_tick_seconds: float = 1.0
    copy_ack_seconds: float = 2.0

    # Keep-alive pinger (free-tier host sleeps after 15 idle minutes)
    keep_alive_enabled: bool = True
    keep_alive_interval: float = 300.0

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
