"""
Stats provider: owns the current session and switches endpoints.

Subscribers attach to the provider, not to a session, so they keep
receiving states across endpoint changes. Switching endpoints discards
the old log and publishes an empty state first.
"""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from matchstats.scheduling import Scheduler
from matchstats.stats import ViewKind

from .options import StatsConfig
from .session import LiveState, LiveStatsSession, SourceFactory, Subscriber

logger = logging.getLogger("matchstats.provider")


class StatsProvider:
    """Entry point for consumers: connect(endpoint) then subscribe()."""

    def __init__(
        self,
        config: Optional[StatsConfig] = None,
        source_factory: Optional[SourceFactory] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.config = config or StatsConfig.from_settings()
        self._source_factory = source_factory
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._session: Optional[LiveStatsSession] = None
        self._unsubscribe_session: Optional[Callable[[], None]] = None
        self._subscribers: List[Subscriber] = []
        # Never held together with _lock
        self._subscribers_lock = threading.Lock()

    @property
    def session(self) -> Optional[LiveStatsSession]:
        return self._session

    @property
    def endpoint_url(self) -> Optional[str]:
        session = self._session
        return session.endpoint_url if session else None

    def connect(
        self,
        endpoint_url: str,
        config: Optional[StatsConfig] = None,
    ) -> LiveStatsSession:
        """
        Attach to an endpoint.

        Reconnecting to the current endpoint with the same config is a
        no-op; anything else tears the old session down and starts a
        fresh one with an empty log.
        """
        config = config or self.config
        with self._lock:
            current = self._session
            if (
                current is not None
                and current.endpoint_url == endpoint_url
                and current.config == config
            ):
                return current
            self._teardown_locked()

            session = LiveStatsSession(
                endpoint_url,
                config=config,
                source_factory=self._source_factory,
                scheduler=self._scheduler,
            )
            self._session = session
            self._unsubscribe_session = session.subscribe(self._forward)

        logger.info(f"Connecting stats provider to {endpoint_url}")
        self._forward(LiveState())
        session.start()
        return session

    def disconnect(self) -> None:
        """Close the current session, if any."""
        with self._lock:
            self._teardown_locked()

    def _teardown_locked(self) -> None:
        session = self._session
        if session is None:
            return
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
        session.close()
        self._session = None
        self._unsubscribe_session = None
        logger.info(f"Disconnected from {session.endpoint_url}")

    def _forward(self, state: LiveState) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(state)
            except Exception as e:
                logger.warning(f"Subscriber failed: {e}", exc_info=True)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for published states across endpoint changes."""
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def state(self) -> LiveState:
        session = self._session
        return session.state if session else LiveState()

    def stats(self, types: Iterable[Union[ViewKind, str]] = ()) -> Optional[Dict[str, Any]]:
        """Views on the current session, or None when disconnected."""
        session = self._session
        if session is None:
            return None
        return session.stats(types)


# Singleton factory
_provider: Optional[StatsProvider] = None


def get_stats_provider() -> StatsProvider:
    """Get the process-wide stats provider."""
    global _provider
    if _provider is None:
        _provider = StatsProvider()
    return _provider


def subscribe_live_stats(
    endpoint_url: str,
    callback: Subscriber,
    config: Optional[StatsConfig] = None,
    **kwargs: Any,
) -> LiveStatsSession:
    """
    Open a standalone session for an endpoint and subscribe to it.

    The caller owns the returned session and must close() it.
    """
    session = LiveStatsSession(endpoint_url, config=config, **kwargs)
    session.subscribe(callback)
    return session.start()
