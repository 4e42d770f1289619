"""
Event source module: the transport boundary of the stats engine.
"""
from .polling import EventSource, EventHandler, PollingEventSource

__all__ = [
    "EventSource",
    "EventHandler",
    "PollingEventSource",
]
