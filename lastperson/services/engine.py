"""Resolution engine.

Single entry point used by the API, the settlement task and the tests. It
gathers inputs from the collaborators, dispatches to the mode resolver and
folds the result into a PlayerGameState. Every call recomputes from scratch;
nothing is cached between calls, so repeated runs over unchanged inputs
produce identical output.
"""

from typing import Optional, Sequence

import structlog

from lastperson.config.rules import RulesConfig, get_rules
from lastperson.models.domain import (
    ClassicPick,
    CupPick,
    EscalatingPick,
    Fixture,
    GameInstance,
    GameMode,
    PickRecord,
    Player,
    TurboPick,
)
from lastperson.services.elimination import ModeResult, track_elimination
from lastperson.services.ledger import deadline_gameweek
from lastperson.services.resolution import (
    ResolutionInvariantError,
    resolve_classic,
    resolve_cup,
    resolve_escalating,
    resolve_turbo,
)
from lastperson.services.sources import DeadlineSource, FixtureSource, PickSource
from lastperson.services.standings import ExcludedPlayer, Standings, build_standings
from lastperson.services.state import PlayerGameState
from lastperson.services.validation import ValidationResult, validate_submission

logger = structlog.get_logger(__name__)

PICK_TYPES = {
    GameMode.CLASSIC: ClassicPick,
    GameMode.TURBO: TurboPick,
    GameMode.ESCALATING: EscalatingPick,
    GameMode.CUP: CupPick,
}


class ResolutionEngine:
    """
    Resolve players and build leaderboards for any game mode.

    Args:
        fixtures: Fixture results collaborator
        picks: Pick persistence collaborator
        deadlines: Deadline scheduling collaborator
        rules: Rules configuration, defaults.yaml when omitted
    """

    def __init__(
        self,
        fixtures: FixtureSource,
        picks: PickSource,
        deadlines: DeadlineSource,
        rules: Optional[RulesConfig] = None,
    ):
        self.fixtures = fixtures
        self.picks = picks
        self.deadlines = deadlines
        self.rules = rules if rules is not None else get_rules()

    def _fixture_map(self, picks: Sequence[PickRecord]) -> dict[str, Fixture]:
        fixtures: dict[str, Fixture] = {}
        for pick in picks:
            fixture = self.fixtures.get_fixture(pick.fixture_id)
            if fixture is not None:
                fixtures[fixture.id] = fixture
        return fixtures

    def _player_picks(self, player_id: str, game: GameInstance) -> list[PickRecord]:
        picks = self.picks.get_picks(player_id, game)
        expected = PICK_TYPES[game.mode]
        for pick in picks:
            if not isinstance(pick, expected):
                raise ResolutionInvariantError(
                    player_id, f"{pick.mode} pick stored in a {game.mode.value} game"
                )
        return picks

    def _resolve_mode(self, player_id: str, game: GameInstance) -> ModeResult:
        picks = self._player_picks(player_id, game)
        fixtures = self._fixture_map(picks)

        def deadline_passed(gameweek: int) -> bool:
            return self.deadlines.is_deadline_passed(game, gameweek)

        if game.mode is GameMode.CLASSIC:
            return resolve_classic(
                player_id, game, picks, fixtures, deadline_passed, self.rules.classic
            )
        if game.mode is GameMode.ESCALATING:
            return resolve_escalating(player_id, game, picks, fixtures, deadline_passed)
        if game.mode is GameMode.TURBO:
            return resolve_turbo(
                player_id,
                game.current_gameweek,
                picks,
                fixtures,
                deadline_passed(game.current_gameweek),
            )
        return resolve_cup(
            player_id,
            picks,
            fixtures,
            deadline_passed(deadline_gameweek(game, None)),
            self.rules.cup,
        )

    def resolve_player(self, player: Player, game: GameInstance) -> PlayerGameState:
        """
        Resolve one player's state in a game.

        Raises:
            ResolutionInvariantError: the player's inputs break an invariant
        """
        result = self._resolve_mode(player.id, game)
        return PlayerGameState(
            player=player,
            mode=game.mode,
            result=result,
            verdict=track_elimination(result),
        )

    def build_standings(self, game: GameInstance, players: Sequence[Player]) -> Standings:
        """
        Rank every player in a game.

        A player whose resolution breaks an invariant is logged and left out
        of the ranking; the rest of the leaderboard is still built.
        """
        states: list[PlayerGameState] = []
        excluded: list[ExcludedPlayer] = []

        for player in players:
            try:
                states.append(self.resolve_player(player, game))
            except ResolutionInvariantError as e:
                logger.error(
                    "player_resolution_failed",
                    game_id=game.id,
                    player_id=player.id,
                    error=e.message,
                )
                excluded.append(ExcludedPlayer(player_id=player.id, reason=e.message))

        standings = build_standings(states, self.rules.standings_for(game.mode), excluded)
        logger.info(
            "standings_computed",
            game_id=game.id,
            mode=game.mode.value,
            players=len(players),
            eliminated=sum(1 for state in states if state.is_eliminated),
            excluded=len(excluded),
        )
        return standings

    def validate_pick(
        self,
        game: GameInstance,
        player: Player,
        picks: Sequence[PickRecord],
        gameweek: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a submission before it is handed to the ledger."""
        previous = self.picks.get_picks(player.id, game)
        fixtures = self._fixture_map([*picks, *previous])

        is_eliminated = False
        if game.mode is not GameMode.TURBO:
            try:
                is_eliminated = self.resolve_player(player, game).is_eliminated
            except ResolutionInvariantError as e:
                logger.warning(
                    "validation_state_unavailable",
                    game_id=game.id,
                    player_id=player.id,
                    error=e.message,
                )

        result = validate_submission(
            game,
            player.id,
            picks,
            fixtures,
            self.rules,
            deadline_passed=self.deadlines.is_deadline_passed(
                game, deadline_gameweek(game, gameweek)
            ),
            gameweek=gameweek,
            previous_picks=previous,
            is_eliminated=is_eliminated,
        )
        if not result.ok:
            logger.info(
                "pick_rejected",
                game_id=game.id,
                player_id=player.id,
                reason=result.reason.value,
            )
        return result
