"""Pytest configuration and fixtures for Last Person Standing tests."""

import pytest

from lastperson.config.rules import RulesConfig
from lastperson.models.domain import CupPick, Fixture, GameInstance, GameMode, Side
from lastperson.services.snapshot import GameSnapshot


@pytest.fixture
def rules():
    """Default rules, independent of defaults.yaml."""
    return RulesConfig()


@pytest.fixture
def make_fixture():
    """Factory for fixtures. Supplying both scores marks the fixture completed."""

    def _make(
        fixture_id,
        home_score=None,
        away_score=None,
        *,
        gameweek=1,
        tier_difference=None,
        home_team=None,
        away_team=None,
        is_completed=None,
    ):
        if is_completed is None:
            is_completed = home_score is not None and away_score is not None
        return Fixture(
            id=fixture_id,
            gameweek=gameweek,
            home_team=home_team or f"{fixture_id}-home",
            away_team=away_team or f"{fixture_id}-away",
            home_score=home_score,
            away_score=away_score,
            is_completed=is_completed,
            tier_difference=tier_difference,
        )

    return _make


@pytest.fixture
def make_game():
    """Factory for game instances."""

    def _make(mode, starting_gameweek=1, current_gameweek=1, **kwargs):
        return GameInstance(
            id=f"{GameMode(mode).value}-game",
            mode=mode,
            starting_gameweek=starting_gameweek,
            current_gameweek=current_gameweek,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_cup_slate(make_fixture):
    """
    Factory for a ranked Cup slate.

    Each row is (home_score, away_score, tier_difference, side). Slates
    shorter than ``size`` are padded with unplayed fixtures.

    Returns:
        (picks, fixtures_by_id)
    """

    def _make(rows, player_id="p1", size=10):
        rows = list(rows)
        while len(rows) < size:
            rows.append((None, None, 0, "home"))

        picks, fixtures = [], {}
        for rank, (home_score, away_score, tier, side) in enumerate(rows, start=1):
            fixture = make_fixture(
                f"c{rank}", home_score, away_score, tier_difference=tier
            )
            fixtures[fixture.id] = fixture
            picks.append(
                CupPick(
                    player_id=player_id,
                    fixture_id=fixture.id,
                    side=Side(side),
                    preference_order=rank,
                )
            )
        return picks, fixtures

    return _make


def _classic_pick(player_id, gameweek, fixture_id, side="home"):
    return {
        "mode": "classic",
        "player_id": player_id,
        "gameweek": gameweek,
        "fixture_id": fixture_id,
        "side": side,
    }


@pytest.fixture
def classic_payload():
    """
    JSON snapshot of a Classic game in gameweek 3.

    alice and dave survive on 5 goals each, bob goes out in gameweek 2 and
    carol draws in gameweek 1. Gameweek 3 is still open.
    """
    return {
        "game": {
            "id": "classic-1",
            "mode": "classic",
            "starting_gameweek": 1,
            "current_gameweek": 3,
            "status": "active",
        },
        "players": [
            {"id": "alice", "display_name": "Alice"},
            {"id": "bob", "display_name": "Bob"},
            {"id": "carol", "display_name": "Carol"},
            {"id": "dave", "display_name": "Dave"},
        ],
        "fixtures": [
            {"id": "f11", "gameweek": 1, "home_team": "Arsenal", "away_team": "Leeds",
             "home_score": 2, "away_score": 0, "is_completed": True},
            {"id": "f12", "gameweek": 1, "home_team": "Chelsea", "away_team": "Fulham",
             "home_score": 1, "away_score": 1, "is_completed": True},
            {"id": "f21", "gameweek": 2, "home_team": "Liverpool", "away_team": "Everton",
             "home_score": 3, "away_score": 1, "is_completed": True},
            {"id": "f22", "gameweek": 2, "home_team": "Man City", "away_team": "Brighton",
             "home_score": 0, "away_score": 1, "is_completed": True},
            {"id": "f31", "gameweek": 3, "home_team": "Arsenal", "away_team": "Spurs"},
        ],
        "picks": [
            _classic_pick("alice", 1, "f11"),
            _classic_pick("alice", 2, "f21"),
            _classic_pick("bob", 1, "f11"),
            _classic_pick("bob", 2, "f22"),
            _classic_pick("carol", 1, "f12"),
            _classic_pick("dave", 1, "f11"),
            _classic_pick("dave", 2, "f21"),
            _classic_pick("dave", 3, "f31", "away"),
        ],
        "deadlines_passed": [1, 2],
        "gameweek_statuses": {"1": "finished", "2": "finished", "3": "open"},
    }


@pytest.fixture
def classic_snapshot(classic_payload):
    return GameSnapshot.model_validate(classic_payload)


@pytest.fixture
def cup_payload():
    """
    JSON snapshot of a Cup game with one player's ten-pick slate.

    Rank 1 is an underdog win worth one life, rank 2 a loss saved by it and
    rank 3 a terminal loss.
    """
    scores = [(1, 0, -1), (0, 2, 0), (0, 1, 0)] + [(2, 0, 0)] * 7
    fixtures, picks = [], []
    for rank, (home, away, tier) in enumerate(scores, start=1):
        fixtures.append({
            "id": f"c{rank}",
            "home_team": f"Home{rank}",
            "away_team": f"Away{rank}",
            "home_score": home,
            "away_score": away,
            "is_completed": True,
            "tier_difference": tier,
        })
        picks.append({
            "mode": "cup",
            "player_id": "ann",
            "fixture_id": f"c{rank}",
            "side": "home",
            "preference_order": rank,
        })
    return {
        "game": {"id": "cup-1", "mode": "cup", "starting_gameweek": 1, "current_gameweek": 1},
        "players": [{"id": "ann", "display_name": "Ann"}, {"id": "ben", "display_name": "Ben"}],
        "fixtures": fixtures,
        "picks": picks,
        "deadlines_passed": [1],
    }
