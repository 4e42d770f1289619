"""
Data models for the live match event log.

Events are immutable once classified. The log itself is an ordered
sequence of these values; derived views are built from snapshots of it.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class EventType(Enum):
    """Kinds of domain events kept in the log."""
    MATCH_CREATED = "match_created"
    SHOT = "shot"
    GOAL_CORRECTION = "goal_correction"
    SUBSTITUTION = "substitution"
    PERIOD_START = "period_start"
    PERIOD_END = "period_end"
    RETRACTION = "retraction"


class PeriodStatus(Enum):
    """State of a single match period."""
    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"
    ENDED = "ENDED"


GOAL_RESULT = "GOAL"


@dataclass(frozen=True)
class Team:
    """A team as announced by the source. Identity is team_id."""
    team_id: str
    name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class MatchCreated:
    """The match itself: both teams and the kickoff time."""
    home_team: Team
    away_team: Team
    scheduled_at: Optional[str] = None

    event_type = EventType.MATCH_CREATED
    id = None


@dataclass(frozen=True)
class Shot:
    """A shot on goal, scoring or not."""
    id: str
    team_id: Optional[str]
    result: Optional[str] = None
    type: Optional[str] = None
    time: Optional[float] = None
    person_id: Optional[str] = None
    person: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    event_type = EventType.SHOT

    @property
    def is_goal(self) -> bool:
        return self.result == GOAL_RESULT


@dataclass(frozen=True)
class GoalCorrection:
    """A goal registered without an accompanying shot."""
    id: str
    team_id: Optional[str]
    time: Optional[float] = None

    event_type = EventType.GOAL_CORRECTION

    @property
    def is_goal(self) -> bool:
        return True


@dataclass(frozen=True)
class Substitution:
    """A player change for one team."""
    id: str
    team_id: Optional[str]
    time: Optional[float] = None
    in_person_id: Optional[str] = None
    in_person: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)
    out_person_id: Optional[str] = None
    out_person: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    event_type = EventType.SUBSTITUTION


@dataclass(frozen=True)
class PeriodStart:
    """Start of a period. occurred_on is epoch seconds as reported by the source."""
    period: int
    occurred_on: Optional[float] = None

    event_type = EventType.PERIOD_START
    id = None


@dataclass(frozen=True)
class PeriodEnd:
    period: int

    event_type = EventType.PERIOD_END
    id = None


@dataclass(frozen=True)
class Retraction:
    """Removes the first logged event carrying the same id."""
    id: Optional[str] = None

    event_type = EventType.RETRACTION


DomainEvent = Union[
    MatchCreated,
    Shot,
    GoalCorrection,
    Substitution,
    PeriodStart,
    PeriodEnd,
    Retraction,
]


def is_goal_event(event: DomainEvent) -> bool:
    """True for scoring shots and goal corrections."""
    return isinstance(event, (Shot, GoalCorrection)) and event.is_goal


# =============================================================================
# DERIVED VALUES
# =============================================================================


@dataclass(frozen=True)
class Match:
    """Match identity derived from the single MatchCreated event."""
    home_team: Team
    away_team: Team
    scheduled_at: Optional[str] = None

    def side_of(self, team_id: Optional[str]) -> Optional[str]:
        """Return "home", "away" or None for a team id."""
        if team_id is None:
            return None
        if team_id == self.home_team.team_id:
            return "home"
        if team_id == self.away_team.team_id:
            return "away"
        return None

    def team_for(self, team_id: Optional[str]) -> Optional[Team]:
        side = self.side_of(team_id)
        if side == "home":
            return self.home_team
        if side == "away":
            return self.away_team
        return None


@dataclass(frozen=True)
class Score:
    """Goals per side. Both values are non-negative."""
    home: int = 0
    away: int = 0

    @property
    def total(self) -> int:
        return self.home + self.away

    @property
    def display(self) -> str:
        """Format score as 'X - Y'."""
        return f"{self.home} - {self.away}"

    def add(self, side: Optional[str]) -> "Score":
        """Return the score with one more goal for the given side."""
        if side == "home":
            return Score(self.home + 1, self.away)
        if side == "away":
            return Score(self.home, self.away + 1)
        return self


@dataclass(frozen=True)
class PeriodState:
    """Classification of one period; elapsed is seconds, only while STARTED."""
    state: PeriodStatus = PeriodStatus.NOT_STARTED
    elapsed: Optional[float] = None


@dataclass(frozen=True)
class GoalEntry:
    """A goal annotated with its team and the score including it."""
    event: Union[Shot, GoalCorrection]
    team: Optional[Team]
    score: Score


@dataclass(frozen=True)
class SubstitutionEntry:
    event: Substitution
    team: Optional[Team]
