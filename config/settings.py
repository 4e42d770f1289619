"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


# Bounds for the event source polling interval (seconds)
MIN_REFRESH_INTERVAL = 5
MAX_REFRESH_INTERVAL = 120


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Event source polling
    refresh_interval: int = MIN_REFRESH_INTERVAL
    request_timeout_seconds: float = 10.0
    default_endpoint_url: Optional[str] = None

    # Match shape
    period_count: int = 2

    # Batching and clock cadence
    flush_delay_seconds: float = 0.01
    clock_tick_seconds: float = 1.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "MATCHSTATS_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
