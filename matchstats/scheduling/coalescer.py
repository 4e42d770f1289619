"""
Update coalescing to bound downstream recomputation.

When many log mutations arrive in a burst (e.g. one poll delivering a
dozen events), only one flush runs and it covers all of them.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .timers import Scheduler, TimerHandle

logger = logging.getLogger("scheduling.coalescer")

DEFAULT_FLUSH_DELAY = 0.01  # seconds


class FlushState(Enum):
    """States of the batching state machine."""
    IDLE = "idle"        # No timer pending
    ARMED = "armed"      # One timer pending
    CLOSED = "closed"    # Cancelled for good


@dataclass
class PendingFlush:
    """Tracks the single armed timer."""
    token: int
    handle: Optional[TimerHandle] = None
    notifications: int = 1


class BatchedUpdateScheduler:
    """
    Leading-edge coalescing of change notifications into one flush.

    Pattern:
    - First notify() while IDLE arms a one-shot timer (ARMED)
    - Further notify() calls while ARMED only count; the timer is not reset
    - On expiry the state returns to IDLE and on_flush runs once
    - cancel() moves to CLOSED; a timer already in flight is ignored

    Usage:
        batcher = BatchedUpdateScheduler(scheduler, 0.01, publish_snapshot)
        batcher.notify()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float = DEFAULT_FLUSH_DELAY,
        on_flush: Optional[Callable[[], None]] = None,
        name: str = "batch",
    ):
        """
        Initialize the batcher.

        Args:
            scheduler: Timer source
            delay: Seconds between the first notification and the flush
            on_flush: Called once per expired timer
            name: Label used in log messages
        """
        self._scheduler = scheduler
        self._delay = delay
        self._on_flush = on_flush
        self._name = name
        self._lock = threading.Lock()
        self._state = FlushState.IDLE
        self._pending: Optional[PendingFlush] = None
        self._next_token = 0
        self._flush_count = 0

    def notify(self) -> bool:
        """
        Signal that something changed.

        Returns:
            True if this call armed a new timer
        """
        with self._lock:
            if self._state is FlushState.CLOSED:
                return False
            if self._state is FlushState.ARMED:
                self._pending.notifications += 1
                return False

            self._next_token += 1
            pending = PendingFlush(token=self._next_token)
            self._pending = pending
            self._state = FlushState.ARMED

        token = pending.token
        handle = self._scheduler.call_later(self._delay, lambda: self._fire(token))
        with self._lock:
            if self._pending is pending:
                pending.handle = handle
            else:
                # Cancelled (or already fired) before the handle came back
                if self._state is FlushState.CLOSED:
                    handle.cancel()
        logger.debug(f"[{self._name}] armed flush in {self._delay}s")
        return True

    def _fire(self, token: int) -> None:
        with self._lock:
            pending = self._pending
            if self._state is not FlushState.ARMED or pending is None or pending.token != token:
                return
            self._state = FlushState.IDLE
            self._pending = None
            self._flush_count += 1

        logger.debug(f"[{self._name}] flushing {pending.notifications} notification(s)")
        if self._on_flush is None:
            return
        try:
            self._on_flush()
        except Exception as e:
            logger.warning(f"[{self._name}] flush callback failed: {e}", exc_info=True)

    def cancel(self) -> None:
        """Cancel any pending timer; no flush happens afterwards."""
        with self._lock:
            pending = self._pending
            self._pending = None
            self._state = FlushState.CLOSED
        if pending is not None and pending.handle is not None:
            pending.handle.cancel()
            logger.debug(f"[{self._name}] cancelled pending flush")

    @property
    def state(self) -> FlushState:
        with self._lock:
            return self._state

    @property
    def is_armed(self) -> bool:
        return self.state is FlushState.ARMED

    @property
    def flush_count(self) -> int:
        """Number of flushes that have run."""
        with self._lock:
            return self._flush_count

    def get_stats(self) -> Dict[str, Any]:
        """Get batcher statistics."""
        with self._lock:
            return {
                "state": self._state.value,
                "flushes": self._flush_count,
                "pending_notifications": self._pending.notifications if self._pending else 0,
            }
