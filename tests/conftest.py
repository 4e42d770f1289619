"""
Shared fixtures: a manual scheduler and fake monotonic clock so timing
behaviour is deterministic, plus a fake event source.
"""
import heapq
import itertools
from typing import Any, Callable, Dict, List, Optional

import pytest

from matchstats.events import MatchCreated, Team
from matchstats.live_stats import StatsConfig


# =============================================================================
# Manual timing
# =============================================================================

class FakeMonotonic:
    """Monotonic clock advanced only by the scheduler."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class ManualTimer:
    def __init__(self, scheduler: "ManualScheduler", due: float, callback: Callable[[], None], interval: Optional[float] = None):
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler that only runs timers when advance() is called."""

    def __init__(self, clock: FakeMonotonic):
        self.clock = clock
        self._queue: List = []
        self._seq = itertools.count()

    def _push(self, timer: ManualTimer) -> ManualTimer:
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        return self._push(ManualTimer(self, self.clock.now + delay, callback))

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        return self._push(ManualTimer(self, self.clock.now + interval, callback, interval))

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self.clock.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.clock.now = due
            timer.callback()
            if timer.interval is not None and not timer.cancelled:
                timer.due = due + timer.interval
                self._push(timer)
        self.clock.now = target


@pytest.fixture
def clock():
    return FakeMonotonic()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


# =============================================================================
# Fake event source
# =============================================================================

class FakeEventSource:
    """In-memory event source; tests push deliveries through emit()."""

    def __init__(self, endpoint_url: str, config: StatsConfig):
        self.endpoint_url = endpoint_url
        self.config = config
        self.handlers: Dict[str, List[Callable]] = {}
        self.started = False
        self.stopped = False

    def on(self, label: str, handler: Callable) -> None:
        self.handlers.setdefault(label, []).append(handler)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def emit(self, label: str, payload: Any, timestamp: Optional[float] = None) -> None:
        for handler in self.handlers.get(label, []):
            handler(payload, timestamp)


@pytest.fixture
def sources():
    """Every fake source created, in creation order."""
    return []


@pytest.fixture
def source_factory(sources):
    def factory(endpoint_url: str, config: StatsConfig) -> FakeEventSource:
        source = FakeEventSource(endpoint_url, config)
        sources.append(source)
        return source
    return factory


# =============================================================================
# Event data
# =============================================================================

HOME = Team(team_id="home-1", name="Home FC")
AWAY = Team(team_id="away-1", name="Away United")


@pytest.fixture
def match_created():
    return MatchCreated(home_team=HOME, away_team=AWAY, scheduled_at="2026-10-18T15:00:00Z")


@pytest.fixture
def match_created_payload():
    """Source-shaped sportingEventCreated payload."""
    return {
        "homeTeam": {"teamId": "home-1", "name": "Home FC", "shortName": "HFC"},
        "awayTeam": {"teamId": "away-1", "name": "Away United"},
        "scheduledAt": "2026-10-18T15:00:00Z",
    }
