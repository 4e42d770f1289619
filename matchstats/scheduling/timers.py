"""
Non-blocking timer primitives.

Everything that needs a delay or an interval goes through a Scheduler so
the timing source can be swapped (threads in production, a manual clock
in tests).
"""
import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger("scheduling.timers")


class TimerHandle(Protocol):
    """A pending one-shot timer or a running interval."""

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""
        ...


class Scheduler(Protocol):
    """
    Interface for timer scheduling.

    Implementations:
    - ThreadingScheduler: threading.Timer based (default)
    - ManualScheduler (tests): advanced explicitly by the test
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval seconds until cancelled."""
        ...


class _Interval:
    """Repeating timer on a daemon thread."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self._interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name="scheduler-interval",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                self._callback()
            except Exception as e:
                logger.warning(f"Interval callback failed: {e}", exc_info=True)

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingScheduler:
    """Scheduler backed by daemon threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        return _Interval(interval, callback)


# Shared default instance
_scheduler = None


def get_default_scheduler() -> Scheduler:
    """Get the process-wide threading scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = ThreadingScheduler()
    return _scheduler
