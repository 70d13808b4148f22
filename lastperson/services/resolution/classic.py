"""Classic mode resolver.

One team per gameweek. A pick wins only when the picked team outscores its
opponent; draws and defeats both eliminate. The first eliminating gameweek is
final and nothing after it is resolved.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

import structlog

from lastperson.config.rules import ClassicRules
from lastperson.models.domain import ClassicPick, Fixture, GameInstance
from lastperson.services.resolution.outcomes import (
    EliminationEvent,
    PickOutcome,
    ResolutionInvariantError,
    ResolvedPick,
    fixture_for,
    resolve_team_pick,
)

logger = structlog.get_logger(__name__)

ELIMINATING = frozenset({PickOutcome.LOSS, PickOutcome.NO_PICK})


@dataclass(frozen=True)
class ClassicGameweek:
    """Outcome of one gameweek for one player."""

    gameweek: int
    outcome: PickOutcome
    pick: Optional[ResolvedPick] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameweek": self.gameweek,
            "outcome": self.outcome.value,
            "pick": self.pick.to_dict() if self.pick else None,
        }


@dataclass
class ClassicResult:
    """Resolved Classic history for one player."""

    player_id: str
    current_gameweek: int
    gameweeks: list[ClassicGameweek] = field(default_factory=list)
    eliminated_gameweek: Optional[int] = None
    total_goals: int = 0

    @property
    def is_active(self) -> bool:
        return self.eliminated_gameweek is None

    @property
    def survived_until(self) -> int:
        """Last gameweek survived; active players rank above every eliminated one."""
        if self.eliminated_gameweek is None:
            return self.current_gameweek + 1
        return self.eliminated_gameweek

    @property
    def wins(self) -> int:
        return sum(1 for gw in self.gameweeks if gw.outcome is PickOutcome.WIN)

    def elimination_events(self) -> Iterator[EliminationEvent]:
        for gw in self.gameweeks:
            if gw.outcome in ELIMINATING:
                yield EliminationEvent(position=gw.gameweek, reason=gw.outcome)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "eliminated_gameweek": self.eliminated_gameweek,
            "total_goals": self.total_goals,
            "wins": self.wins,
            "gameweeks": [gw.to_dict() for gw in self.gameweeks],
        }


def resolve_classic(
    player_id: str,
    game: GameInstance,
    picks: Sequence[ClassicPick],
    fixtures: Mapping[str, Fixture],
    deadline_passed: Callable[[int], bool],
    rules: ClassicRules,
) -> ClassicResult:
    """
    Resolve a Classic player's history from the starting gameweek onwards.

    Args:
        player_id: Player being resolved
        game: Game instance (defines gameweeks in scope)
        picks: All of the player's Classic picks for the game
        fixtures: Fixtures by id
        deadline_passed: Whether a gameweek's pick deadline has passed
        rules: Classic rules

    Returns:
        ClassicResult with one entry per gameweek reached
    """
    by_gameweek: dict[int, ClassicPick] = {}
    for pick in picks:
        if pick.gameweek in by_gameweek:
            raise ResolutionInvariantError(
                player_id, f"more than one classic pick in gameweek {pick.gameweek}"
            )
        by_gameweek[pick.gameweek] = pick

    result = ClassicResult(player_id=player_id, current_gameweek=game.current_gameweek)

    for gameweek in game.gameweeks_in_scope():
        pick = by_gameweek.get(gameweek)

        if pick is None:
            if not deadline_passed(gameweek):
                result.gameweeks.append(ClassicGameweek(gameweek, PickOutcome.AWAITING))
                continue
            if gameweek == game.starting_gameweek and rules.first_gameweek_exempt:
                result.gameweeks.append(ClassicGameweek(gameweek, PickOutcome.EXEMPT))
                continue
            result.gameweeks.append(ClassicGameweek(gameweek, PickOutcome.NO_PICK))
            result.eliminated_gameweek = gameweek
            break

        fixture = fixture_for(fixtures, player_id, pick.fixture_id)
        resolved = resolve_team_pick(fixture, pick.side, gameweek, PickOutcome.LOSS)
        result.gameweeks.append(ClassicGameweek(gameweek, resolved.outcome, resolved))

        if resolved.outcome is PickOutcome.WIN:
            result.total_goals += resolved.goals
        elif resolved.outcome is PickOutcome.LOSS:
            result.eliminated_gameweek = gameweek
            break

    logger.debug(
        "classic_resolved",
        player_id=player_id,
        eliminated_gameweek=result.eliminated_gameweek,
        total_goals=result.total_goals,
    )
    return result
