"""
Event log module: domain event models, ingestion and the log store.
"""
from .models import (
    EventType,
    PeriodStatus,
    Team,
    MatchCreated,
    Shot,
    GoalCorrection,
    Substitution,
    PeriodStart,
    PeriodEnd,
    Retraction,
    DomainEvent,
    Match,
    Score,
    PeriodState,
    GoalEntry,
    SubstitutionEntry,
    is_goal_event,
)
from .ingest import classify, RECOGNIZED_LABELS
from .log import EventLogStore, resolve_log

__all__ = [
    # Events
    "EventType",
    "Team",
    "MatchCreated",
    "Shot",
    "GoalCorrection",
    "Substitution",
    "PeriodStart",
    "PeriodEnd",
    "Retraction",
    "DomainEvent",
    "is_goal_event",
    # Derived values
    "PeriodStatus",
    "Match",
    "Score",
    "PeriodState",
    "GoalEntry",
    "SubstitutionEntry",
    # Ingestion
    "classify",
    "RECOGNIZED_LABELS",
    # Store
    "EventLogStore",
    "resolve_log",
]
