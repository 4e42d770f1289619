"""
Stats derivations over an event log snapshot.

Every view is a pure function of (log, precalculated, server_time).
The precalculated table memoizes views by kind for one aggregation pass,
so sibling views share prerequisites (principally match identity)
instead of re-deriving them.

Missing data never raises: if the match is not identifiable, views that
depend on it return their neutral form.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from matchstats.clock import UNKNOWN_SERVER_TIME
from matchstats.events.log import resolve_log
from matchstats.events.models import (
    DomainEvent,
    GoalEntry,
    Match,
    MatchCreated,
    PeriodEnd,
    PeriodStart,
    PeriodState,
    PeriodStatus,
    Score,
    Shot,
    Substitution,
    SubstitutionEntry,
    is_goal_event,
)

logger = logging.getLogger("matchstats.stats")

DEFAULT_PERIOD_COUNT = 2


class ViewKind(Enum):
    """Named statistical views."""
    MATCH = "match"
    SCORE = "score"
    PERIOD = "period"
    GOALS = "goals"
    SUBSTITUTIONS = "substitutions"
    SHOTS = "shots"
    RAW = "raw"


# Views that need match identity and their neutral forms
_NEUTRAL = {
    ViewKind.SCORE: lambda: None,
    ViewKind.PERIOD: dict,
    ViewKind.GOALS: list,
    ViewKind.SUBSTITUTIONS: list,
    ViewKind.SHOTS: list,
}

Precalculated = Dict[ViewKind, Any]


def period_key(period: int) -> str:
    """Key of a period slot in the period view, e.g. 'period1'."""
    return f"period{period}"


def _as_kind(view_kind: Union[ViewKind, str]) -> ViewKind:
    if isinstance(view_kind, ViewKind):
        return view_kind
    try:
        return ViewKind(view_kind)
    except ValueError:
        raise ValueError(f"Unknown view kind: {view_kind!r}") from None


# =============================================================================
# DERIVATIONS
# =============================================================================


def _derive_match(log: Sequence[DomainEvent], pre: Precalculated, server_time: float, period_count: int) -> Optional[Match]:
    created = [e for e in log if isinstance(e, MatchCreated)]
    if len(created) != 1:
        if created:
            logger.debug(f"Match undefined: {len(created)} MatchCreated events")
        return None
    event = created[0]
    return Match(
        home_team=event.home_team,
        away_team=event.away_team,
        scheduled_at=event.scheduled_at,
    )


def _derive_score(log, pre, server_time, period_count) -> Score:
    match: Match = pre[ViewKind.MATCH]
    home = away = 0
    for event in log:
        if not is_goal_event(event):
            continue
        side = match.side_of(event.team_id)
        if side == "home":
            home += 1
        elif side == "away":
            away += 1
    return Score(home=home, away=away)


def _derive_period(log, pre, server_time, period_count) -> Dict[str, PeriodState]:
    starts: Dict[int, PeriodStart] = {}
    ended = set()
    for event in log:
        if isinstance(event, PeriodStart):
            starts.setdefault(event.period, event)
        elif isinstance(event, PeriodEnd):
            ended.add(event.period)

    periods = {}
    for period in range(1, period_count + 1):
        if period in ended:
            state = PeriodState(PeriodStatus.ENDED)
        elif period in starts:
            state = PeriodState(
                PeriodStatus.STARTED,
                elapsed=_elapsed(starts[period], server_time),
            )
        else:
            state = PeriodState(PeriodStatus.NOT_STARTED)
        periods[period_key(period)] = state
    return periods


def _elapsed(start: PeriodStart, server_time: Optional[float]) -> Optional[float]:
    """Seconds since the period started, or None when it cannot be known."""
    if not server_time or start.occurred_on is None:
        return None
    return max(0.0, server_time - start.occurred_on)


def _derive_goals(log, pre, server_time, period_count) -> List[GoalEntry]:
    match: Match = pre[ViewKind.MATCH]
    score = Score()
    goals = []
    for event in log:
        if not is_goal_event(event):
            continue
        score = score.add(match.side_of(event.team_id))
        goals.append(GoalEntry(event=event, team=match.team_for(event.team_id), score=score))
    return goals


def _derive_substitutions(log, pre, server_time, period_count) -> List[SubstitutionEntry]:
    match: Match = pre[ViewKind.MATCH]
    return [
        SubstitutionEntry(event=event, team=match.team_for(event.team_id))
        for event in log
        if isinstance(event, Substitution)
    ]


def _derive_shots(log, pre, server_time, period_count) -> List[Shot]:
    return [event for event in log if isinstance(event, Shot)]


def _derive_raw(log, pre, server_time, period_count) -> Tuple[DomainEvent, ...]:
    return tuple(log)


_DERIVATIONS: Dict[ViewKind, Callable[..., Any]] = {
    ViewKind.MATCH: _derive_match,
    ViewKind.SCORE: _derive_score,
    ViewKind.PERIOD: _derive_period,
    ViewKind.GOALS: _derive_goals,
    ViewKind.SUBSTITUTIONS: _derive_substitutions,
    ViewKind.SHOTS: _derive_shots,
    ViewKind.RAW: _derive_raw,
}


# =============================================================================
# PUBLIC API
# =============================================================================


def compute_view(
    log: Iterable[DomainEvent],
    view_kind: Union[ViewKind, str],
    precalculated: Precalculated,
    server_time: float = UNKNOWN_SERVER_TIME,
    period_count: int = DEFAULT_PERIOD_COUNT,
) -> Any:
    """
    Compute one named view.

    Args:
        log: Log snapshot; Retraction entries are applied if present
        view_kind: ViewKind or its string value
        precalculated: Memo table for this pass, keyed by ViewKind.
            Read for prerequisites and updated with the result.
        server_time: Synchronized server time (epoch seconds), 0 if unknown
        period_count: Number of period slots in the period view

    Returns:
        The view value, or its neutral form when the match is unknown

    Raises:
        ValueError: If view_kind is not a known view
    """
    kind = _as_kind(view_kind)
    if kind in precalculated:
        return precalculated[kind]

    snapshot = resolve_log(log)

    if kind in _NEUTRAL:
        if ViewKind.MATCH not in precalculated:
            compute_view(snapshot, ViewKind.MATCH, precalculated, server_time, period_count)
        if precalculated[ViewKind.MATCH] is None:
            result = _NEUTRAL[kind]()
            precalculated[kind] = result
            return result

    result = _DERIVATIONS[kind](snapshot, precalculated, server_time, period_count)
    precalculated[kind] = result
    return result


def aggregate(
    log: Iterable[DomainEvent],
    types: Iterable[Union[ViewKind, str]],
    server_time: float = UNKNOWN_SERVER_TIME,
    period_count: int = DEFAULT_PERIOD_COUNT,
) -> Dict[str, Any]:
    """
    Run one aggregation pass.

    The match view is always computed first and included; each requested
    view is then derived against the same memo table.

    Returns:
        Mapping of view name to value, e.g. {"match": ..., "score": ...}
    """
    kinds = [_as_kind(t) for t in types]
    snapshot = resolve_log(log)
    precalculated: Precalculated = {}

    stats = {
        ViewKind.MATCH.value: compute_view(
            snapshot, ViewKind.MATCH, precalculated, server_time, period_count
        ),
    }
    for kind in kinds:
        stats[kind.value] = compute_view(
            snapshot, kind, precalculated, server_time, period_count
        )
    return stats
