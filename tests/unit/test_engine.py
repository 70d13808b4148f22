"""Unit tests for the resolution engine and game snapshots."""

from lastperson.models.domain import ClassicPick, GameMode, Player, Side
from lastperson.services.resolution import PickOutcome
from lastperson.services.snapshot import GameSnapshot
from lastperson.services.sources import InMemoryFixtureSource, StaticDeadlines
from lastperson.services.validation import RejectionReason


def _ids(standings):
    return [row.state.player_id for row in standings.rows]


class TestBuildStandings:

    def test_classic_ranking(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)

        standings = engine.build_standings(classic_snapshot.game, classic_snapshot.players)

        # alice and dave tie on every link and keep ingestion order
        assert _ids(standings) == ["alice", "dave", "bob", "carol"]
        alice, dave, bob, carol = standings.states
        assert alice.total_goals == dave.total_goals == 5
        assert bob.eliminated_at == 2
        assert carol.eliminated_at == 1
        assert carol.verdict.reason is PickOutcome.LOSS

    def test_recomputation_is_idempotent(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)

        first = engine.build_standings(classic_snapshot.game, classic_snapshot.players)
        second = engine.build_standings(classic_snapshot.game, classic_snapshot.players)

        assert first.to_dict() == second.to_dict()

    def test_invariant_breach_excludes_only_that_player(self, classic_payload, rules):
        classic_payload["players"].append({"id": "erin", "display_name": "Erin"})
        classic_payload["picks"].append(
            {"mode": "classic", "player_id": "erin", "gameweek": 1,
             "fixture_id": "ghost", "side": "home"}
        )
        snapshot = GameSnapshot.model_validate(classic_payload)

        standings = snapshot.build_engine(rules).build_standings(snapshot.game, snapshot.players)

        assert _ids(standings) == ["alice", "dave", "bob", "carol"]
        assert standings.excluded[0].player_id == "erin"
        assert "unknown fixture ghost" in standings.excluded[0].reason

    def test_pick_from_another_mode_is_excluded(self, classic_payload, rules):
        classic_payload["picks"].append(
            {"mode": "turbo", "player_id": "bob", "gameweek": 3, "fixture_id": "f31",
             "predicted_result": "draw", "preference_order": 1}
        )
        snapshot = GameSnapshot.model_validate(classic_payload)

        standings = snapshot.build_engine(rules).build_standings(snapshot.game, snapshot.players)

        assert [item.player_id for item in standings.excluded] == ["bob"]
        assert "turbo pick stored in a classic game" in standings.excluded[0].reason

    def test_ineligible_cup_slate_is_excluded(self, cup_payload, rules):
        cup_payload["fixtures"][4]["tier_difference"] = 3
        snapshot = GameSnapshot.model_validate(cup_payload)

        standings = snapshot.build_engine(rules).build_standings(snapshot.game, snapshot.players)

        assert _ids(standings) == ["ben"]
        assert standings.excluded[0].player_id == "ann"
        assert "tiers below" in standings.excluded[0].reason

    def test_cup_standings(self, cup_payload, rules):
        snapshot = GameSnapshot.model_validate(cup_payload)

        standings = snapshot.build_engine(rules).build_standings(snapshot.game, snapshot.players)

        ann, ben = standings.states
        assert (ann.player_id, ann.streak, ann.lives, ann.total_goals) == ("ann", 2, 0, 1)
        assert ann.eliminated_at == 3
        assert ben.verdict.reason is PickOutcome.NO_PICK
        assert ben.eliminated_at == 1


class TestResolvePlayer:

    def test_awaiting_current_gameweek(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)

        state = engine.resolve_player(classic_snapshot.player("alice"), classic_snapshot.game)

        assert state.is_active
        assert state.result.gameweeks[-1].outcome is PickOutcome.AWAITING
        assert state.streak == 2

    def test_player_without_picks(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)

        state = engine.resolve_player(Player(id="zed"), classic_snapshot.game)

        assert state.verdict.reason is PickOutcome.NO_PICK
        assert state.eliminated_at == 1


class TestValidatePick:

    def _pick(self, player_id, gameweek, fixture_id, side):
        return ClassicPick(player_id=player_id, gameweek=gameweek, fixture_id=fixture_id, side=Side(side))

    def test_accepts_unused_team(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)
        alice = classic_snapshot.player("alice")

        result = engine.validate_pick(
            classic_snapshot.game, alice, [self._pick("alice", 3, "f31", "away")]
        )

        assert result.ok

    def test_rejects_team_reuse_from_stored_picks(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)
        alice = classic_snapshot.player("alice")

        result = engine.validate_pick(
            classic_snapshot.game, alice, [self._pick("alice", 3, "f31", "home")]
        )

        assert result.reason is RejectionReason.TEAM_ALREADY_USED
        assert result.detail == "Arsenal already picked in gameweek 1"

    def test_rejects_eliminated_player(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)
        bob = classic_snapshot.player("bob")

        result = engine.validate_pick(
            classic_snapshot.game, bob, [self._pick("bob", 3, "f31", "away")]
        )

        assert result.reason is RejectionReason.PLAYER_ELIMINATED

    def test_rejects_after_deadline(self, classic_snapshot, rules):
        engine = classic_snapshot.build_engine(rules)
        alice = classic_snapshot.player("alice")

        result = engine.validate_pick(
            classic_snapshot.game, alice, [self._pick("alice", 2, "f22", "away")], gameweek=2
        )

        assert result.reason is RejectionReason.DEADLINE_PASSED


class TestGameSnapshot:

    def test_parses_tagged_picks(self, classic_snapshot):
        assert all(isinstance(pick, ClassicPick) for pick in classic_snapshot.picks)
        assert classic_snapshot.game.mode is GameMode.CLASSIC
        assert sorted(classic_snapshot.gameweek_statuses) == [1, 2, 3]

    def test_picks_by_player(self, classic_snapshot):
        grouped = classic_snapshot.picks_by_player()

        assert len(grouped["dave"]) == 3
        assert "zed" not in grouped

    def test_unknown_player(self, classic_snapshot):
        assert classic_snapshot.player("zed") is None


class TestInMemorySources:

    def test_fixture_upsert_replaces(self, make_fixture):
        source = InMemoryFixtureSource([make_fixture("f1", gameweek=2)])
        source.upsert(make_fixture("f1", 1, 0, gameweek=2))
        source.upsert(make_fixture("f2", gameweek=3))

        assert len(source) == 2
        assert source.get_fixture("f1").is_resolved
        assert source.get_fixture("nope") is None

    def test_static_deadlines(self, make_game):
        deadlines = StaticDeadlines([1, 2])
        game = make_game(GameMode.CLASSIC, current_gameweek=3)

        assert deadlines.is_deadline_passed(game, 2)
        assert not deadlines.is_deadline_passed(game, 3)
