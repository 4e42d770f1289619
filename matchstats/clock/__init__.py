"""
Server clock module: sync snapshots and live clock extrapolation.
"""
from .sync import (
    ClockSync,
    ServerClockSynchronizer,
    UNKNOWN_SERVER_TIME,
    DEFAULT_TICK_INTERVAL,
)

__all__ = [
    "ClockSync",
    "ServerClockSynchronizer",
    "UNKNOWN_SERVER_TIME",
    "DEFAULT_TICK_INTERVAL",
]
