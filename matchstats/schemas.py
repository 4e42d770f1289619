"""
Pydantic schemas for API responses.
Maps derived stats views onto JSON-stable shapes.
"""
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from matchstats.events.models import (
    GoalEntry,
    Match,
    PeriodState,
    Score,
    Shot,
    SubstitutionEntry,
    Team,
)


# ===== TEAM / MATCH SCHEMAS =====

class TeamSchema(BaseModel):
    """Team reference"""
    team_id: str
    name: str

    @classmethod
    def from_team(cls, team: Optional[Team]) -> Optional["TeamSchema"]:
        if team is None:
            return None
        return cls(team_id=team.team_id, name=team.name)


class MatchSchema(BaseModel):
    """Match identity"""
    home_team: TeamSchema
    away_team: TeamSchema
    scheduled_at: Optional[str] = None

    @classmethod
    def from_match(cls, match: Match) -> "MatchSchema":
        return cls(
            home_team=TeamSchema.from_team(match.home_team),
            away_team=TeamSchema.from_team(match.away_team),
            scheduled_at=match.scheduled_at,
        )


# ===== SCORE / PERIOD SCHEMAS =====

class ScoreSchema(BaseModel):
    home: int
    away: int
    display: str

    @classmethod
    def from_score(cls, score: Score) -> "ScoreSchema":
        return cls(home=score.home, away=score.away, display=score.display)


class PeriodSchema(BaseModel):
    """Period state; elapsed (seconds) only while started and clock known"""
    state: str
    elapsed: Optional[float] = None

    @classmethod
    def from_state(cls, state: PeriodState) -> "PeriodSchema":
        return cls(state=state.state.value, elapsed=state.elapsed)


# ===== TIMELINE SCHEMAS =====

class ShotSchema(BaseModel):
    id: str
    team_id: Optional[str] = None
    result: Optional[str] = None
    type: Optional[str] = None
    time: Optional[float] = None
    person_id: Optional[str] = None

    @classmethod
    def from_shot(cls, shot: Shot) -> "ShotSchema":
        return cls(
            id=shot.id,
            team_id=shot.team_id,
            result=shot.result,
            type=shot.type,
            time=shot.time,
            person_id=shot.person_id,
        )


class GoalSchema(BaseModel):
    """Goal with the running score including it"""
    id: str
    kind: str  # "shot" | "goal_correction"
    time: Optional[float] = None
    team: Optional[TeamSchema] = None
    score: ScoreSchema

    @classmethod
    def from_entry(cls, entry: GoalEntry) -> "GoalSchema":
        return cls(
            id=entry.event.id,
            kind=entry.event.event_type.value,
            time=entry.event.time,
            team=TeamSchema.from_team(entry.team),
            score=ScoreSchema.from_score(entry.score),
        )


class SubstitutionSchema(BaseModel):
    id: str
    time: Optional[float] = None
    team: Optional[TeamSchema] = None
    in_person_id: Optional[str] = None
    out_person_id: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: SubstitutionEntry) -> "SubstitutionSchema":
        return cls(
            id=entry.event.id,
            time=entry.event.time,
            team=TeamSchema.from_team(entry.team),
            in_person_id=entry.event.in_person_id,
            out_person_id=entry.event.out_person_id,
        )


# ===== RESPONSE SCHEMAS =====

class StatsResponse(BaseModel):
    """Aggregation pass result; only requested views are set"""
    endpoint_url: str
    server_time: float
    match: Optional[MatchSchema] = None
    score: Optional[ScoreSchema] = None
    period: Optional[Dict[str, PeriodSchema]] = None
    goals: Optional[List[GoalSchema]] = None
    substitutions: Optional[List[SubstitutionSchema]] = None
    shots: Optional[List[ShotSchema]] = None
    raw: Optional[List[Dict[str, Any]]] = None


class StreamRequest(BaseModel):
    endpoint_url: str
    refresh_interval: Optional[int] = None
    period_count: Optional[int] = None


class StateResponse(BaseModel):
    connected: bool
    endpoint_url: Optional[str] = None
    event_count: int = 0
    server_time: float = 0.0


def event_to_dict(event: Any) -> Dict[str, Any]:
    """Plain-dict form of a domain event for the raw view."""
    data = asdict(event)
    data["event_type"] = event.event_type.value
    return data
