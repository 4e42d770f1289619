"""Per-session configuration."""
from dataclasses import dataclass

from config.settings import MAX_REFRESH_INTERVAL, MIN_REFRESH_INTERVAL, settings
from matchstats.clock import DEFAULT_TICK_INTERVAL
from matchstats.scheduling import DEFAULT_FLUSH_DELAY
from matchstats.utils.helpers import clamp, safe_int

DEFAULT_REFRESH_INTERVAL = MIN_REFRESH_INTERVAL
DEFAULT_PERIOD_COUNT = 2


@dataclass(frozen=True)
class StatsConfig:
    """
    Options recognized by a stats session.

    refresh_interval is clamped to [5, 120] seconds; period_count is at
    least 1. Invalid values fall back to the defaults.
    """
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    period_count: int = DEFAULT_PERIOD_COUNT
    flush_delay: float = DEFAULT_FLUSH_DELAY
    tick_interval: float = DEFAULT_TICK_INTERVAL
    request_timeout: float = 10.0

    def __post_init__(self):
        interval = clamp(
            safe_int(self.refresh_interval, DEFAULT_REFRESH_INTERVAL),
            MIN_REFRESH_INTERVAL,
            MAX_REFRESH_INTERVAL,
        )
        periods = max(1, safe_int(self.period_count, DEFAULT_PERIOD_COUNT))
        object.__setattr__(self, "refresh_interval", interval)
        object.__setattr__(self, "period_count", periods)

    @classmethod
    def from_settings(cls) -> "StatsConfig":
        """Build from the environment-backed application settings."""
        return cls(
            refresh_interval=settings.refresh_interval,
            period_count=settings.period_count,
            flush_delay=settings.flush_delay_seconds,
            tick_interval=settings.clock_tick_seconds,
            request_timeout=settings.request_timeout_seconds,
        )
