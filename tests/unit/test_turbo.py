"""Unit tests for the Turbo mode resolver."""

import pytest

from lastperson.models.domain import PredictedResult, TurboPick
from lastperson.services.resolution import PickOutcome, ResolutionInvariantError, resolve_turbo


def _pick(rank, fixture_id, predicted, gameweek=1):
    return TurboPick(
        player_id="p1",
        gameweek=gameweek,
        fixture_id=fixture_id,
        predicted_result=PredictedResult(predicted),
        preference_order=rank,
    )


class TestTurboStreak:
    """consecutive_correct stops at the first incorrect or unfinished pick."""

    def test_unfinished_fixture_breaks_streak(self, make_fixture):
        """Rank 1 correct, rank 2 not played, rank 3 correct."""
        fixtures = {
            "f1": make_fixture("f1", 2, 0),
            "f2": make_fixture("f2"),
            "f3": make_fixture("f3", 0, 1),
        }
        picks = [
            _pick(1, "f1", "home_win"),
            _pick(2, "f2", "home_win"),
            _pick(3, "f3", "away_win"),
        ]

        result = resolve_turbo("p1", 1, picks, fixtures, deadline_passed=True)

        assert result.consecutive_correct == 1
        assert result.total_correct == 2
        assert [p.outcome for p in result.picks] == [
            PickOutcome.CORRECT,
            PickOutcome.PENDING,
            PickOutcome.CORRECT,
        ]

    def test_incorrect_prediction_breaks_streak(self, make_fixture):
        fixtures = {
            "f1": make_fixture("f1", 1, 0),
            "f2": make_fixture("f2", 1, 1),
            "f3": make_fixture("f3", 3, 0),
        }
        picks = [
            _pick(1, "f1", "home_win"),
            _pick(2, "f2", "away_win"),
            _pick(3, "f3", "home_win"),
        ]

        result = resolve_turbo("p1", 1, picks, fixtures, deadline_passed=True)

        assert result.consecutive_correct == 1
        assert result.picks[1].outcome is PickOutcome.INCORRECT
        # Goals only from picks inside the streak
        assert result.goals_in_correct_picks == 1
        assert result.picks[2].goals == 0
        assert not result.picks[2].in_streak

    def test_streak_never_exceeds_first_break(self, make_fixture):
        fixtures = {f"f{i}": make_fixture(f"f{i}", 2, 0) for i in range(1, 6)}
        fixtures["f4"] = make_fixture("f4", 0, 2)
        picks = [_pick(i, f"f{i}", "home_win") for i in range(1, 6)]

        result = resolve_turbo("p1", 1, picks, fixtures, deadline_passed=True)

        assert result.consecutive_correct == 3
        assert result.total_correct == 4

    def test_ranks_resolved_in_preference_order(self, make_fixture):
        fixtures = {"f1": make_fixture("f1", 0, 1), "f2": make_fixture("f2", 2, 0)}
        picks = [_pick(2, "f1", "home_win"), _pick(1, "f2", "home_win")]

        result = resolve_turbo("p1", 1, picks, fixtures, deadline_passed=True)

        assert [p.preference_order for p in result.picks] == [1, 2]
        assert result.consecutive_correct == 1

    def test_correct_draw_counts_goals(self, make_fixture):
        fixtures = {"f1": make_fixture("f1", 2, 2)}

        result = resolve_turbo("p1", 1, [_pick(1, "f1", "draw")], fixtures, True)

        assert result.consecutive_correct == 1
        assert result.goals_in_correct_picks == 2

    def test_away_win_counts_away_goals(self, make_fixture):
        fixtures = {"f1": make_fixture("f1", 1, 4)}

        result = resolve_turbo("p1", 1, [_pick(1, "f1", "away_win")], fixtures, True)

        assert result.goals_in_correct_picks == 4


class TestTurboGameweekScope:

    def test_only_requested_gameweek_counts(self, make_fixture):
        fixtures = {"f1": make_fixture("f1", 1, 0), "f2": make_fixture("f2", 1, 0)}
        picks = [_pick(1, "f1", "home_win", gameweek=1), _pick(1, "f2", "home_win", gameweek=2)]

        result = resolve_turbo("p1", 2, picks, fixtures, deadline_passed=True)

        assert len(result.picks) == 1
        assert result.picks[0].fixture_id == "f2"

    def test_missed_deadline(self):
        result = resolve_turbo("p1", 1, [], {}, deadline_passed=True)

        assert result.missed_deadline
        assert list(result.elimination_events())[0].reason is PickOutcome.NO_PICK

    def test_no_picks_before_deadline(self):
        result = resolve_turbo("p1", 1, [], {}, deadline_passed=False)

        assert not result.missed_deadline
        assert list(result.elimination_events()) == []

    def test_duplicate_rank_is_invariant_breach(self, make_fixture):
        fixtures = {"f1": make_fixture("f1", 1, 0), "f2": make_fixture("f2", 1, 0)}
        picks = [_pick(1, "f1", "home_win"), _pick(1, "f2", "home_win")]

        with pytest.raises(ResolutionInvariantError, match="duplicate"):
            resolve_turbo("p1", 1, picks, fixtures, deadline_passed=True)
