"""
Scheduling module: timer primitives and update coalescing.
"""
from .timers import Scheduler, TimerHandle, ThreadingScheduler, get_default_scheduler
from .coalescer import BatchedUpdateScheduler, FlushState, DEFAULT_FLUSH_DELAY

__all__ = [
    # Timers
    "Scheduler",
    "TimerHandle",
    "ThreadingScheduler",
    "get_default_scheduler",
    # Coalescing
    "BatchedUpdateScheduler",
    "FlushState",
    "DEFAULT_FLUSH_DELAY",
]
