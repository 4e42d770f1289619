"""
Live stats session: one endpoint, one event log, one clock.

The session owns the mutable working log. Subscribers only ever see
LiveState values holding immutable snapshots.

Flow:
    source delivery -> classify -> log store -> batcher.notify()
    batcher flush   -> snapshot -> publish LiveState
    clock tick      -> server time -> publish LiveState
"""
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from matchstats.clock import ServerClockSynchronizer, UNKNOWN_SERVER_TIME
from matchstats.events import RECOGNIZED_LABELS, DomainEvent, EventLogStore, classify
from matchstats.scheduling import BatchedUpdateScheduler, Scheduler, get_default_scheduler
from matchstats.source import EventSource, PollingEventSource
from matchstats.stats import ViewKind, aggregate

from .options import StatsConfig

logger = logging.getLogger("matchstats.session")


@dataclass(frozen=True)
class LiveState:
    """
    Combined published state.

    event_log and server_time update independently: a flush replaces the
    log, a clock tick replaces the time, and the other field keeps its
    previous object.
    """
    event_log: Tuple[DomainEvent, ...] = ()
    server_time: float = UNKNOWN_SERVER_TIME


Subscriber = Callable[[LiveState], None]
SourceFactory = Callable[[str, StatsConfig], EventSource]


def default_source_factory(endpoint_url: str, config: StatsConfig) -> EventSource:
    """Build the HTTP polling source for an endpoint."""
    return PollingEventSource(
        endpoint_url,
        refresh_interval=config.refresh_interval,
        timeout=config.request_timeout,
    )


class LiveStatsSession:
    """
    Aggregation engine bound to one event endpoint.

    Lifecycle: create -> start() -> ... -> close(). After close() no
    mutation or publication happens, including for deliveries and timers
    that were already in flight.
    """

    def __init__(
        self,
        endpoint_url: str,
        config: Optional[StatsConfig] = None,
        source_factory: Optional[SourceFactory] = None,
        scheduler: Optional[Scheduler] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.endpoint_url = endpoint_url
        self.config = config or StatsConfig()
        self._source_factory = source_factory or default_source_factory
        self._scheduler = scheduler or get_default_scheduler()

        self._lock = threading.Lock()
        self._publish_lock = threading.RLock()
        self._alive = False
        self._closed = False

        self._store = EventLogStore()
        self._state = LiveState()
        self._subscribers: List[Subscriber] = []
        self._source: Optional[EventSource] = None
        self._deliveries = 0
        self._dropped = 0

        self._batcher = BatchedUpdateScheduler(
            self._scheduler,
            delay=self.config.flush_delay,
            on_flush=self._flush,
            name="event-log",
        )
        self._clock = ServerClockSynchronizer(
            self._scheduler,
            monotonic=monotonic,
            sync_delay=self.config.flush_delay,
            tick_interval=self.config.tick_interval,
            on_tick=self._on_tick,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> "LiveStatsSession":
        """Connect the event source and start the clock tick."""
        with self._lock:
            if self._alive or self._closed:
                return self
            self._alive = True

        source = self._source_factory(self.endpoint_url, self.config)
        for label in RECOGNIZED_LABELS:
            source.on(label, self._make_handler(label))
        with self._lock:
            self._source = source

        self._clock.start()
        source.start()
        logger.info(f"Session started for {self.endpoint_url}")
        return self

    def close(self) -> None:
        """
        Tear down: stop the source first, then cancel timers.

        Returns only once any publication already running has stopped.
        Idempotent.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._alive = False
            source = self._source
            self._source = None

        if source is not None:
            source.stop()
        self._batcher.cancel()
        self._clock.close()
        # Wait out a publication already in flight; it stops at the next subscriber
        with self._publish_lock:
            logger.info(f"Session closed for {self.endpoint_url}")

    @property
    def is_alive(self) -> bool:
        with self._lock:
            return self._alive

    def __enter__(self) -> "LiveStatsSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # INGESTION
    # =========================================================================

    def _make_handler(self, label: str) -> Callable[[Dict[str, Any], Optional[float]], None]:
        def handler(payload: Dict[str, Any], timestamp: Optional[float] = None) -> None:
            self.deliver(label, payload, timestamp)
        return handler

    def deliver(self, label: str, payload: Any, timestamp: Optional[float] = None) -> bool:
        """
        Handle one delivery from the event source.

        Returns:
            True if the delivery changed the log
        """
        event = classify(label, payload, timestamp)
        with self._lock:
            if not self._alive:
                return False
            self._deliveries += 1
            if event is None:
                self._dropped += 1
                return False
            self._store.apply(event)
            logger.debug(f"Applied {event.event_type.value} (log size {len(self._store)})")
            self._batcher.notify()

        self._clock.report(timestamp)
        return True

    def _flush(self) -> None:
        with self._publish_lock:
            with self._lock:
                if not self._alive:
                    return
                snapshot = self._store.snapshot()
            self._set_state(replace(self._state, event_log=snapshot))

    def _on_tick(self, server_time: float) -> None:
        with self._publish_lock:
            with self._lock:
                if not self._alive:
                    return
            self._set_state(replace(self._state, server_time=server_time))

    # =========================================================================
    # PUBLICATION
    # =========================================================================

    def _set_state(self, state: LiveState) -> None:
        self._state = state
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            with self._lock:
                if not self._alive:
                    return
            try:
                callback(state)
            except Exception as e:
                logger.warning(f"Subscriber failed: {e}", exc_info=True)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register for published states.

        Returns:
            Unsubscribe function (safe to call more than once)
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def state(self) -> LiveState:
        """Latest published state."""
        return self._state

    def stats(self, types: Iterable[Union[ViewKind, str]] = ()) -> Dict[str, Any]:
        """Compute the match view plus the requested views on the latest state."""
        state = self._state
        return aggregate(
            state.event_log,
            types,
            server_time=state.server_time,
            period_count=self.config.period_count,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get session statistics."""
        state = self._state
        with self._lock:
            return {
                "endpoint_url": self.endpoint_url,
                "alive": self._alive,
                "deliveries": self._deliveries,
                "dropped": self._dropped,
                "working_log_size": len(self._store),
                "published_log_size": len(state.event_log),
                "server_time": state.server_time,
                "clock_synced": self._clock.is_synced,
                "batcher": self._batcher.get_stats(),
            }
