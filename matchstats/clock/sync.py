"""
Server clock synchronization.

The source reports absolute time only alongside events. Between reports
the displayed server time is extrapolated from a local monotonic clock:

    server_time = server_time_at_sync + (monotonic_now - local_monotonic_at_sync)
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from matchstats.scheduling import BatchedUpdateScheduler, DEFAULT_FLUSH_DELAY, Scheduler, TimerHandle

logger = logging.getLogger("matchstats.clock")

UNKNOWN_SERVER_TIME = 0.0
DEFAULT_TICK_INTERVAL = 1.0  # seconds


@dataclass(frozen=True)
class ClockSync:
    """One synchronization point. Replaced wholesale, never merged."""
    server_time_at_sync: float
    local_monotonic_at_sync: float

    def extrapolate(self, monotonic_now: float) -> float:
        return self.server_time_at_sync + (monotonic_now - self.local_monotonic_at_sync)


class ServerClockSynchronizer:
    """
    Tracks the offset between the source clock and local monotonic time.

    Reports are debounced through their own BatchedUpdateScheduler;
    the latest report received before the flush wins. A periodic tick
    recomputes the displayed server time once a sync exists.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        monotonic: Callable[[], float] = time.monotonic,
        sync_delay: float = DEFAULT_FLUSH_DELAY,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        on_sync: Optional[Callable[[ClockSync], None]] = None,
        on_tick: Optional[Callable[[float], None]] = None,
    ):
        self._scheduler = scheduler
        self._monotonic = monotonic
        self._tick_interval = tick_interval
        self._on_sync = on_sync
        self._on_tick = on_tick
        self._lock = threading.Lock()
        self._sync: Optional[ClockSync] = None
        self._pending: Optional[Tuple[float, float]] = None
        self._tick_handle: Optional[TimerHandle] = None
        self._closed = False
        self._batcher = BatchedUpdateScheduler(
            scheduler,
            delay=sync_delay,
            on_flush=self._apply_pending,
            name="clock-sync",
        )

    def report(self, server_time: Optional[float]) -> None:
        """Record a source-reported instant (epoch seconds)."""
        if server_time is None:
            return
        with self._lock:
            if self._closed:
                return
            self._pending = (float(server_time), self._monotonic())
        self._batcher.notify()

    def _apply_pending(self) -> None:
        with self._lock:
            if self._closed or self._pending is None:
                return
            reported, local = self._pending
            self._pending = None
            self._sync = ClockSync(
                server_time_at_sync=reported,
                local_monotonic_at_sync=local,
            )
            sync = self._sync
        logger.debug(f"Clock synced to server time {reported:.3f}")
        if self._on_sync is not None:
            self._on_sync(sync)

    @property
    def sync(self) -> Optional[ClockSync]:
        with self._lock:
            return self._sync

    @property
    def is_synced(self) -> bool:
        return self.sync is not None

    def server_time(self, monotonic_now: Optional[float] = None) -> float:
        """
        Current extrapolated server time.

        Returns UNKNOWN_SERVER_TIME (0.0) until the first sync.
        """
        sync = self.sync
        if sync is None:
            return UNKNOWN_SERVER_TIME
        if monotonic_now is None:
            monotonic_now = self._monotonic()
        return sync.extrapolate(monotonic_now)

    def start(self) -> None:
        """Start the periodic tick."""
        with self._lock:
            if self._closed or self._tick_handle is not None:
                return
        handle = self._scheduler.call_every(self._tick_interval, self.tick)
        with self._lock:
            if self._closed:
                handle.cancel()
                return
            self._tick_handle = handle

    def tick(self) -> Optional[float]:
        """
        Recompute the displayed server time.

        Returns:
            The new server time, or None when closed or not yet synced
        """
        with self._lock:
            if self._closed or self._sync is None:
                return None
        value = self.server_time()
        if self._on_tick is not None:
            self._on_tick(value)
        return value

    def close(self) -> None:
        """Cancel the pending sync and the tick. Idempotent."""
        with self._lock:
            self._closed = True
            handle = self._tick_handle
            self._tick_handle = None
            self._pending = None
        self._batcher.cancel()
        if handle is not None:
            handle.cancel()
