"""
Classification of raw event-stream deliveries into domain events.

The source delivers (label, payload, timestamp) triples. Field names are
normalized here so the rest of the engine never sees source-specific
shapes (e.g. a shot's nested possession reference becomes a bare team_id).
"""
import logging
from typing import Any, Callable, Dict, Optional

from matchstats.utils.helpers import (
    parse_timestamp,
    safe_int,
    safe_optional_str,
    safe_str,
)

from .models import (
    DomainEvent,
    GoalCorrection,
    MatchCreated,
    PeriodEnd,
    PeriodStart,
    Retraction,
    Shot,
    Substitution,
    Team,
)

logger = logging.getLogger("matchstats.ingest")


def _team(raw: Any) -> Team:
    if not isinstance(raw, dict):
        raise ValueError(f"team must be an object, got {type(raw).__name__}")
    team_id = safe_optional_str(raw.get("teamId"))
    if team_id is None:
        raise ValueError("team without teamId")
    extra = {k: v for k, v in raw.items() if k not in ("teamId", "name")}
    return Team(team_id=team_id, name=safe_str(raw.get("name")), attributes=extra)


def _require_id(payload: Dict[str, Any]) -> str:
    event_id = safe_optional_str(payload.get("id"))
    if event_id is None:
        raise ValueError("missing id")
    return event_id


def _time(payload: Dict[str, Any]) -> Optional[float]:
    value = payload.get("time")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _person_id(person: Any, fallback: Any = None) -> Optional[str]:
    if isinstance(person, dict) and person.get("personId") is not None:
        return safe_optional_str(person.get("personId"))
    return safe_optional_str(fallback)


def _period(payload: Dict[str, Any]) -> int:
    period = safe_int(payload.get("period"), default=-1)
    if period < 1:
        raise ValueError(f"invalid period {payload.get('period')!r}")
    return period


def _match_created(payload: Dict[str, Any], timestamp: Optional[float]) -> MatchCreated:
    return MatchCreated(
        home_team=_team(payload.get("homeTeam")),
        away_team=_team(payload.get("awayTeam")),
        scheduled_at=safe_optional_str(payload.get("scheduledAt")),
    )


def _shot(payload: Dict[str, Any], timestamp: Optional[float]) -> Shot:
    possession = payload.get("possession")
    if isinstance(possession, dict):
        team_id = safe_optional_str(possession.get("teamId"))
    else:
        team_id = safe_optional_str(payload.get("teamId"))
    person = payload.get("person")
    return Shot(
        id=_require_id(payload),
        team_id=team_id,
        result=safe_optional_str(payload.get("result")),
        type=safe_optional_str(payload.get("type")),
        time=_time(payload),
        person_id=_person_id(person, payload.get("personId")),
        person=person if isinstance(person, dict) else None,
    )


def _goal_correction(payload: Dict[str, Any], timestamp: Optional[float]) -> GoalCorrection:
    return GoalCorrection(
        id=_require_id(payload),
        team_id=safe_optional_str(payload.get("teamId")),
        time=_time(payload),
    )


def _substitution(payload: Dict[str, Any], timestamp: Optional[float]) -> Substitution:
    in_person = payload.get("inPerson")
    out_person = payload.get("outPerson")
    return Substitution(
        id=_require_id(payload),
        team_id=safe_optional_str(payload.get("teamId")),
        time=_time(payload),
        in_person_id=_person_id(in_person, payload.get("inPersonId")),
        in_person=in_person if isinstance(in_person, dict) else None,
        out_person_id=_person_id(out_person, payload.get("outPersonId")),
        out_person=out_person if isinstance(out_person, dict) else None,
    )


def _period_start(payload: Dict[str, Any], timestamp: Optional[float]) -> PeriodStart:
    occurred_on = parse_timestamp(payload.get("occurredOn"))
    if occurred_on is None:
        occurred_on = timestamp
    return PeriodStart(period=_period(payload), occurred_on=occurred_on)


def _period_end(payload: Dict[str, Any], timestamp: Optional[float]) -> PeriodEnd:
    return PeriodEnd(period=_period(payload))


def _retraction(payload: Dict[str, Any], timestamp: Optional[float]) -> Retraction:
    return Retraction(id=safe_optional_str(payload.get("id")))


_CLASSIFIERS: Dict[str, Callable[[Dict[str, Any], Optional[float]], DomainEvent]] = {
    "sportingEventCreated": _match_created,
    "shot": _shot,
    "goalCorrection": _goal_correction,
    "substitution": _substitution,
    "startPeriod": _period_start,
    "endPeriod": _period_end,
    "observationRemoved": _retraction,
}

RECOGNIZED_LABELS = tuple(_CLASSIFIERS)


def classify(
    label: str,
    payload: Any,
    timestamp: Optional[float] = None,
) -> Optional[DomainEvent]:
    """
    Turn one source delivery into a domain event.

    Args:
        label: Source event label, e.g. "shot"
        payload: Decoded event attributes
        timestamp: Source-reported delivery instant (epoch seconds)

    Returns:
        The classified event, or None for unknown labels and
        malformed payloads (both are logged and dropped).
    """
    classifier = _CLASSIFIERS.get(label)
    if classifier is None:
        logger.debug(f"Ignoring unrecognized event label: {label}")
        return None

    if not isinstance(payload, dict):
        logger.warning(f"Dropping {label} event with non-object payload")
        return None

    try:
        return classifier(payload, timestamp)
    except ValueError as e:
        logger.warning(f"Dropping malformed {label} event: {e}")
        return None
