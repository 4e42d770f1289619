"""
Event source interface and REST polling implementation.

The source pattern keeps the transport swappable: the session only
registers label handlers and starts/stops the source.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from matchstats.utils.helpers import parse_timestamp

logger = logging.getLogger("matchstats.source")

EventHandler = Callable[[Dict[str, Any], Optional[float]], None]


class EventSource(Protocol):
    """
    Interface for event sources.

    Implementations:
    - PollingEventSource: HTTP polling with a cursor (current)

    Handlers are called one delivery at a time, never concurrently.
    """

    def on(self, label: str, handler: EventHandler) -> None:
        """Register a handler for one event label."""
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        """Stop delivering. No handler runs after this returns."""
        ...


class PollingEventSource:
    """
    Polls an event endpoint and dispatches new events by label.

    Each poll requests events after the last seen cursor:

        GET {endpoint_url}?since={cursor}
        -> {"events": [{"type": "shot", "attributes": {...},
                        "occurredOn": "..."}],
            "cursor": "..."}
    """

    def __init__(
        self,
        endpoint_url: str,
        refresh_interval: float,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.endpoint_url = endpoint_url
        self.refresh_interval = refresh_interval
        self._http = session or requests.Session()
        self._timeout = timeout
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._cursor: Optional[str] = None
        self._stopped = threading.Event()
        self._dispatch_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def on(self, label: str, handler: EventHandler) -> None:
        self._handlers.setdefault(label, []).append(handler)

    def start(self) -> None:
        """Start polling on a background thread."""
        if self._thread is not None or self._stopped.is_set():
            return
        self._thread = threading.Thread(
            target=self._run,
            name="event-source-poll",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Polling {self.endpoint_url} every {self.refresh_interval}s")

    def stop(self) -> None:
        """Stop polling. Idempotent."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        # Wait out a dispatch already in progress
        with self._dispatch_lock:
            pass
        logger.info(f"Stopped polling {self.endpoint_url}")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self.poll_once()
            if self._stopped.wait(self.refresh_interval):
                break

    def poll_once(self) -> int:
        """
        Fetch and dispatch one batch.

        Returns:
            Number of events dispatched
        """
        try:
            data = self._fetch()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to poll events from {self.endpoint_url}: {e}")
            return 0

        events, cursor = self._parse(data)
        dispatched = 0
        with self._dispatch_lock:
            for label, payload, timestamp in events:
                if self._stopped.is_set():
                    break
                self._dispatch(label, payload, timestamp)
                dispatched += 1
            if cursor is not None and not self._stopped.is_set():
                self._cursor = cursor
        return dispatched

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _fetch(self) -> Dict[str, Any]:
        params = {"since": self._cursor} if self._cursor else {}
        response = self._http.get(self.endpoint_url, params=params, timeout=self._timeout)
        response.raise_for_status()
        return response.json()

    def _parse(self, data: Any) -> Tuple[List[Tuple[str, Dict[str, Any], Optional[float]]], Optional[str]]:
        if not isinstance(data, dict):
            logger.warning(f"Unexpected poll response shape from {self.endpoint_url}")
            return [], None

        events = []
        for raw in data.get("events") or []:
            if not isinstance(raw, dict) or not raw.get("type"):
                continue
            events.append((
                raw["type"],
                raw.get("attributes") or {},
                parse_timestamp(raw.get("occurredOn")),
            ))
        cursor = data.get("cursor")
        return events, str(cursor) if cursor is not None else None

    def _dispatch(self, label: str, payload: Dict[str, Any], timestamp: Optional[float]) -> None:
        for handler in self._handlers.get(label, []):
            try:
                handler(payload, timestamp)
            except Exception as e:
                logger.warning(f"Handler for {label} failed: {e}", exc_info=True)
