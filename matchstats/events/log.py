"""
Ordered, mutable event log with id-based retraction.

The working list is owned by the store. Readers only ever receive
tuples produced by snapshot(), so later mutations cannot reach a
snapshot that has already been handed out.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from .models import DomainEvent, Retraction

logger = logging.getLogger("matchstats.event_log")


class EventLogStore:
    """
    Arrival-ordered event log.

    No deduplication or validation happens here; the only way an event
    leaves the log is retraction by id.
    """

    def __init__(self, events: Optional[Iterable[DomainEvent]] = None):
        self._events: List[DomainEvent] = []
        if events:
            for event in events:
                self.apply(event)

    def append(self, event: DomainEvent) -> None:
        """Add an event to the end of the log."""
        self._events.append(event)

    def retract(self, event_id: Optional[str]) -> bool:
        """
        Remove the first event whose id equals event_id.

        Empty ids and ids that match nothing are a no-op.

        Returns:
            True if an event was removed
        """
        if not event_id:
            return False
        for index, event in enumerate(self._events):
            if getattr(event, "id", None) == event_id:
                del self._events[index]
                logger.debug(f"Retracted event {event_id}")
                return True
        logger.debug(f"Retraction of unknown event {event_id} ignored")
        return False

    def apply(self, event: DomainEvent) -> None:
        """Retract for Retraction events, append for everything else."""
        if isinstance(event, Retraction):
            self.retract(event.id)
        else:
            self.append(event)

    def snapshot(self) -> Tuple[DomainEvent, ...]:
        """Immutable copy of the current contents."""
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


def resolve_log(events: Iterable[DomainEvent]) -> Tuple[DomainEvent, ...]:
    """
    Replay a delivered sequence, applying any Retraction entries.

    Store snapshots never contain retractions, so for them this is a copy.
    """
    if isinstance(events, tuple) and not any(isinstance(e, Retraction) for e in events):
        return events
    return EventLogStore(events).snapshot()
