"""Unit tests for the pick ledger."""

import pytest

from lastperson.models.domain import ClassicPick, CupPick, GameMode, PredictedResult, Side, TurboPick
from lastperson.services.ledger import DeadlinePassedError, PickLedger, deadline_gameweek, scope_gameweek
from lastperson.services.sources import StaticDeadlines


def _classic(gameweek, fixture_id, player_id="p1"):
    return ClassicPick(player_id=player_id, gameweek=gameweek, fixture_id=fixture_id, side=Side.HOME)


def _cup(rank, fixture_id):
    return CupPick(player_id="p1", fixture_id=fixture_id, side=Side.HOME, preference_order=rank)


class TestScopes:

    def test_cup_scope_is_whole_game(self, make_game):
        game = make_game(GameMode.CUP, starting_gameweek=3, current_gameweek=5)

        assert scope_gameweek(game, 5) is None
        assert deadline_gameweek(game, 5) == 3

    def test_other_modes_default_to_current_gameweek(self, make_game):
        game = make_game(GameMode.TURBO, current_gameweek=4)

        assert scope_gameweek(game, None) == 4
        assert deadline_gameweek(game, 2) == 2


class TestPickLedger:

    def setup_method(self):
        self.ledger = PickLedger(StaticDeadlines([1]))

    def test_submission_replaces_scope(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)

        self.ledger.submit(game, "p1", [_classic(2, "f1")])
        self.ledger.submit(game, "p1", [_classic(2, "f2")])

        assert [pick.fixture_id for pick in self.ledger.get_picks("p1", game)] == ["f2"]

    def test_frozen_scope_rejects_submission(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)

        with pytest.raises(DeadlinePassedError):
            self.ledger.submit(game, "p1", [_classic(1, "f1")], gameweek=1)

    def test_frozen_scope_stays_readable(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)
        self.ledger.load(game, [_classic(1, "f1")])

        assert len(self.ledger.get_picks("p1", game)) == 1

    def test_wrong_mode_rejected(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)
        pick = TurboPick(
            player_id="p1",
            gameweek=2,
            fixture_id="f1",
            predicted_result=PredictedResult.DRAW,
            preference_order=1,
        )

        with pytest.raises(ValueError, match="turbo pick"):
            self.ledger.submit(game, "p1", [pick])

    def test_other_players_pick_rejected(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)

        with pytest.raises(ValueError):
            self.ledger.submit(game, "p1", [_classic(2, "f1", player_id="p2")])

    def test_wrong_gameweek_rejected(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=3)

        with pytest.raises(ValueError, match="gameweek 2"):
            self.ledger.submit(game, "p1", [_classic(2, "f1")])

    def test_picks_ordered_by_gameweek_then_rank(self, make_game):
        game = make_game(GameMode.CUP, starting_gameweek=2, current_gameweek=2)
        self.ledger.submit(game, "p1", [_cup(3, "c3"), _cup(1, "c1"), _cup(2, "c2")])

        assert [pick.preference_order for pick in self.ledger.get_picks("p1", game)] == [1, 2, 3]

    def test_players_in_first_submission_order(self, make_game):
        game = make_game(GameMode.CLASSIC, current_gameweek=2)
        self.ledger.submit(game, "p2", [_classic(2, "f1", player_id="p2")])
        self.ledger.submit(game, "p1", [_classic(2, "f2")])
        self.ledger.submit(game, "p2", [_classic(2, "f3", player_id="p2")])

        assert self.ledger.players(game) == ["p2", "p1"]

    def test_games_are_isolated(self, make_game):
        classic = make_game(GameMode.CLASSIC, current_gameweek=2)
        self.ledger.submit(classic, "p1", [_classic(2, "f1")])

        other = classic.model_copy(update={"id": "another"})

        assert self.ledger.get_picks("p1", other) == []
