"""
Tests for stats derivations: match identity, score, periods, goal
timeline, substitutions, shots and the raw view.
"""
import pytest

from matchstats.events import (
    GoalCorrection,
    Match,
    MatchCreated,
    PeriodEnd,
    PeriodStart,
    PeriodState,
    PeriodStatus,
    Retraction,
    Score,
    Shot,
    Substitution,
    Team,
)
from matchstats.stats import ViewKind, aggregate, compute_view

from conftest import AWAY, HOME

DEPENDENT_VIEWS = ["score", "period", "goals", "substitutions", "shots"]
NEUTRAL = {"score": None, "period": {}, "goals": [], "substitutions": [], "shots": []}


def goal(event_id, team, result="GOAL"):
    return Shot(id=event_id, team_id=team.team_id, result=result)


@pytest.fixture
def full_log(match_created):
    return [
        match_created,
        PeriodStart(period=1, occurred_on=10_000.0),
        goal("s1", HOME),
        goal("s2", AWAY, result="SAVED"),
        Substitution(id="sub1", team_id=AWAY.team_id, in_person_id="p12", out_person_id="p7"),
        goal("s3", AWAY),
        GoalCorrection(id="g1", team_id=HOME.team_id),
        PeriodEnd(period=1),
        PeriodStart(period=2, occurred_on=13_600.0),
        goal("s4", HOME),
    ]


# =============================================================================
# Match identity
# =============================================================================

class TestMatchView:

    def test_single_match_created(self, match_created):
        match = compute_view([match_created], "match", {})
        assert match == Match(home_team=HOME, away_team=AWAY, scheduled_at="2026-10-18T15:00:00Z")

    @pytest.mark.parametrize("count", [0, 2])
    def test_zero_or_duplicate_match_created(self, match_created, count):
        log = [match_created] * count + [goal("s1", HOME), PeriodStart(period=1, occurred_on=1.0)]
        stats = aggregate(log, DEPENDENT_VIEWS + ["raw"], server_time=100.0)

        assert stats["match"] is None
        for view, neutral in NEUTRAL.items():
            assert stats[view] == neutral
        assert stats["raw"] == tuple(log)

    def test_match_reused_from_precalculated(self):
        precalculated = {ViewKind.MATCH: Match(home_team=HOME, away_team=AWAY)}
        # No MatchCreated in the log: the memoized match is used as-is
        score = compute_view([goal("s1", AWAY)], ViewKind.SCORE, precalculated)
        assert score == Score(home=0, away=1)
        assert precalculated[ViewKind.SCORE] is score

    def test_unknown_view_kind(self, match_created):
        with pytest.raises(ValueError):
            compute_view([match_created], "possession", {})


# =============================================================================
# Score and goals
# =============================================================================

class TestScoreAndGoals:

    def test_score(self, full_log):
        assert compute_view(full_log, "score", {}) == Score(home=3, away=1)

    def test_score_total_equals_goal_events(self, full_log):
        score = compute_view(full_log, "score", {})
        goal_events = [
            e for e in full_log
            if isinstance(e, GoalCorrection) or (isinstance(e, Shot) and e.result == "GOAL")
        ]
        assert score.total == len(goal_events)

    def test_unattributed_goal_counts_for_neither_side(self, match_created):
        stranger = Team(team_id="other")
        log = [match_created, goal("s1", stranger), goal("s2", HOME)]
        stats = aggregate(log, ["score", "goals"])

        assert stats["score"] == Score(home=1, away=0)
        assert stats["goals"][0].team is None
        assert stats["goals"][0].score == Score(0, 0)
        assert stats["goals"][1].score == Score(1, 0)

    def test_goal_timeline_running_score(self, full_log):
        goals = compute_view(full_log, "goals", {})

        assert [g.event.id for g in goals] == ["s1", "s3", "g1", "s4"]
        assert [g.team for g in goals] == [HOME, AWAY, HOME, HOME]
        assert [g.score for g in goals] == [
            Score(1, 0), Score(1, 1), Score(2, 1), Score(3, 1),
        ]

    def test_first_goal_never_shows_nil_nil(self, match_created):
        goals = compute_view([match_created, goal("s1", AWAY)], "goals", {})
        assert goals[0].score == Score(home=0, away=1)

    def test_retraction_scenario(self, match_created):
        log = [match_created, goal("1", HOME), goal("2", AWAY), Retraction(id="1")]
        stats = aggregate(log, ["score", "goals"])

        assert stats["score"] == Score(home=0, away=1)
        assert len(stats["goals"]) == 1
        assert stats["goals"][0].team == AWAY
        assert stats["goals"][0].score == Score(home=0, away=1)

    def test_last_goal_matches_score(self, full_log):
        stats = aggregate(full_log, ["score", "goals"])
        assert stats["goals"][-1].score == stats["score"]


# =============================================================================
# Periods
# =============================================================================

class TestPeriodView:

    def test_default_two_periods(self, full_log):
        periods = compute_view(full_log, "period", {}, server_time=14_200.0)
        assert periods == {
            "period1": PeriodState(PeriodStatus.ENDED),
            "period2": PeriodState(PeriodStatus.STARTED, elapsed=600.0),
        }

    def test_configurable_period_count(self, match_created):
        periods = compute_view([match_created], "period", {}, period_count=4)
        assert list(periods) == ["period1", "period2", "period3", "period4"]
        assert all(p.state is PeriodStatus.NOT_STARTED for p in periods.values())

    def test_end_dominates_regardless_of_order(self, match_created):
        log = [match_created, PeriodEnd(period=1), PeriodStart(period=1, occurred_on=1.0)]
        periods = compute_view(log, "period", {}, server_time=100.0)
        assert periods["period1"] == PeriodState(PeriodStatus.ENDED)

    def test_end_without_start(self, match_created):
        periods = compute_view([match_created, PeriodEnd(period=2)], "period", {})
        assert periods["period2"].state is PeriodStatus.ENDED
        assert periods["period1"].state is PeriodStatus.NOT_STARTED

    def test_no_clock_sync_omits_elapsed(self, match_created):
        log = [match_created, PeriodStart(period=1, occurred_on=10_000.0)]
        periods = compute_view(log, "period", {}, server_time=0.0)
        assert periods["period1"].state is PeriodStatus.STARTED
        assert periods["period1"].elapsed is None

    def test_unknown_start_instant_omits_elapsed(self, match_created):
        log = [match_created, PeriodStart(period=1)]
        periods = compute_view(log, "period", {}, server_time=10_000.0)
        assert periods["period1"].elapsed is None

    def test_negative_elapsed_is_clamped(self, match_created):
        log = [match_created, PeriodStart(period=1, occurred_on=10_000.0)]
        periods = compute_view(log, "period", {}, server_time=9_990.0)
        assert periods["period1"].elapsed == 0.0

    def test_first_start_of_period_is_used(self, match_created):
        log = [
            match_created,
            PeriodStart(period=1, occurred_on=10_000.0),
            PeriodStart(period=1, occurred_on=10_300.0),
        ]
        periods = compute_view(log, "period", {}, server_time=10_600.0)
        assert periods["period1"].elapsed == 600.0

    def test_periods_beyond_count_are_ignored(self, match_created):
        log = [match_created, PeriodStart(period=3, occurred_on=1.0)]
        periods = compute_view(log, "period", {})
        assert "period3" not in periods


# =============================================================================
# Substitutions, shots, raw
# =============================================================================

class TestListViews:

    def test_substitutions_with_team(self, full_log):
        subs = compute_view(full_log, "substitutions", {})
        assert len(subs) == 1
        assert subs[0].team == AWAY
        assert subs[0].event.in_person_id == "p12"

    def test_shots_unfiltered_by_result(self, full_log):
        shots = compute_view(full_log, "shots", {})
        assert [s.id for s in shots] == ["s1", "s2", "s3", "s4"]

    def test_raw_is_order_preserving_tuple(self, full_log):
        raw = compute_view(full_log, "raw", {})
        assert raw == tuple(full_log)

    def test_derivations_do_not_mutate_log(self, full_log):
        original = list(full_log)
        aggregate(full_log, [k.value for k in ViewKind], server_time=20_000.0)
        assert full_log == original


class TestAggregate:

    def test_match_always_included(self, full_log):
        stats = aggregate(full_log, ["score"])
        assert set(stats) == {"match", "score"}
        assert stats["match"].home_team == HOME

    def test_accepts_view_kinds(self, full_log):
        stats = aggregate(full_log, [ViewKind.SHOTS, ViewKind.GOALS])
        assert len(stats["shots"]) == 4
        assert len(stats["goals"]) == 4

    def test_match_with_created_event_instance(self):
        created = MatchCreated(home_team=HOME, away_team=AWAY)
        stats = aggregate([created], ["score"])
        assert stats["score"] == Score(0, 0)
