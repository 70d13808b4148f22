"""Outcome types shared by the mode resolvers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from lastperson.models.domain import Fixture, MatchResult, Side


class PickOutcome(str, Enum):
    """Per-pick outcome across all modes."""

    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"
    PENDING = "pending"            # Fixture not completed yet
    NO_PICK = "no_pick"            # Deadline passed without a submission
    EXEMPT = "exempt"              # Missed deadline, covered by an exemption
    AWAITING = "awaiting"          # No pick yet, deadline still open
    # Turbo
    CORRECT = "correct"
    INCORRECT = "incorrect"
    # Cup
    DRAW_SUCCESS = "draw_success"  # Underdog draw counts as a win
    SAVED_BY_LIFE = "saved_by_life"
    NOT_REACHED = "not_reached"    # After the terminal loss


CUP_SUCCESS_OUTCOMES = frozenset(
    {PickOutcome.WIN, PickOutcome.DRAW_SUCCESS, PickOutcome.SAVED_BY_LIFE}
)


class ResolutionInvariantError(Exception):
    """Input breaks an invariant validation should have enforced.

    Fatal for the affected player's resolution only.
    """

    def __init__(self, player_id: str, message: str):
        self.player_id = player_id
        self.message = message
        super().__init__(f"player {player_id}: {message}")


@dataclass(frozen=True)
class EliminationEvent:
    """An eliminating outcome at a gameweek or pick rank."""

    position: Optional[int]
    reason: PickOutcome


@dataclass(frozen=True)
class ResolvedPick:
    """A team pick resolved against its fixture (Classic and Escalating)."""

    gameweek: int
    fixture_id: str
    side: Side
    team: str
    opponent: str
    outcome: PickOutcome
    goals: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameweek": self.gameweek,
            "fixture_id": self.fixture_id,
            "side": self.side.value,
            "team": self.team,
            "opponent": self.opponent,
            "outcome": self.outcome.value,
            "goals": self.goals,
        }


def index_fixtures(fixtures: Iterable[Fixture]) -> dict[str, Fixture]:
    """Map fixtures by id."""
    return {fixture.id: fixture for fixture in fixtures}


def fixture_for(
    fixtures: Mapping[str, Fixture], player_id: str, fixture_id: str
) -> Fixture:
    """Look up a picked fixture, treating a dangling reference as an invariant breach."""
    fixture = fixtures.get(fixture_id)
    if fixture is None:
        raise ResolutionInvariantError(player_id, f"unknown fixture {fixture_id}")
    return fixture


def resolve_team_pick(
    fixture: Fixture, side: Side, gameweek: int, draw_outcome: PickOutcome
) -> ResolvedPick:
    """
    Resolve a team pick.

    Winning picks carry the picked team's goals. ``draw_outcome`` is what a
    draw maps to: LOSS in Classic, DRAW in Escalating.
    """
    result = fixture.result_for(side)
    goals = 0
    if result is None:
        outcome = PickOutcome.PENDING
    elif result is MatchResult.WIN:
        outcome = PickOutcome.WIN
        goals = fixture.score(side)
    elif result is MatchResult.DRAW:
        outcome = draw_outcome
    else:
        outcome = PickOutcome.LOSS

    return ResolvedPick(
        gameweek=gameweek,
        fixture_id=fixture.id,
        side=side,
        team=fixture.team(side),
        opponent=fixture.team(side.opposite),
        outcome=outcome,
        goals=goals,
    )
