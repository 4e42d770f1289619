"""
Live Stats module: session lifecycle and the subscription entry points.

A session turns an event endpoint into a stream of LiveState values
(event log snapshot + synchronized server time); the provider keeps one
session per consumer and swaps it when the endpoint changes.
"""
from .options import StatsConfig
from .session import (
    LiveState,
    LiveStatsSession,
    default_source_factory,
)
from .provider import (
    StatsProvider,
    get_stats_provider,
    subscribe_live_stats,
)

__all__ = [
    # Config
    "StatsConfig",
    # Session
    "LiveState",
    "LiveStatsSession",
    "default_source_factory",
    # Provider
    "StatsProvider",
    "get_stats_provider",
    "subscribe_live_stats",
]
