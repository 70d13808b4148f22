"""Escalating mode resolver.

The required number of picks grows by one each gameweek, starting at one.
A gameweek is passed only when every required pick wins.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

import structlog

from lastperson.models.domain import EscalatingPick, Fixture, GameInstance
from lastperson.services.resolution.outcomes import (
    EliminationEvent,
    PickOutcome,
    ResolutionInvariantError,
    ResolvedPick,
    fixture_for,
    resolve_team_pick,
)

logger = structlog.get_logger(__name__)


class GameweekVerdict(str, Enum):
    """Escalating verdict for a single gameweek."""
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"
    NO_PICK = "no_pick"
    AWAITING = "awaiting"


@dataclass
class EscalatingGameweek:
    """Per-gameweek counts, kept for display even when the gameweek eliminates."""

    gameweek: int
    required: int
    verdict: GameweekVerdict
    picks: list[ResolvedPick] = field(default_factory=list)
    wins: int = 0
    losses: int = 0
    draws: int = 0
    goals: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameweek": self.gameweek,
            "required": self.required,
            "verdict": self.verdict.value,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "goals": self.goals,
            "picks": [pick.to_dict() for pick in self.picks],
        }


@dataclass
class EscalatingResult:
    """Resolved Escalating history for one player."""

    player_id: str
    gameweeks: list[EscalatingGameweek] = field(default_factory=list)
    eliminated_gameweek: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.eliminated_gameweek is None

    @property
    def total_wins(self) -> int:
        return sum(gw.wins for gw in self.gameweeks)

    @property
    def total_losses(self) -> int:
        return sum(gw.losses for gw in self.gameweeks)

    @property
    def total_draws(self) -> int:
        return sum(gw.draws for gw in self.gameweeks)

    @property
    def total_goals(self) -> int:
        return sum(gw.goals for gw in self.gameweeks)

    def elimination_events(self) -> Iterator[EliminationEvent]:
        for gw in self.gameweeks:
            if gw.verdict is GameweekVerdict.FAILED:
                yield EliminationEvent(position=gw.gameweek, reason=PickOutcome.LOSS)
            elif gw.verdict is GameweekVerdict.NO_PICK:
                yield EliminationEvent(position=gw.gameweek, reason=PickOutcome.NO_PICK)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "eliminated_gameweek": self.eliminated_gameweek,
            "total_wins": self.total_wins,
            "total_losses": self.total_losses,
            "total_draws": self.total_draws,
            "total_goals": self.total_goals,
            "gameweeks": [gw.to_dict() for gw in self.gameweeks],
        }


def _resolve_gameweek(
    player_id: str,
    gameweek: int,
    required: int,
    picks: Sequence[EscalatingPick],
    fixtures: Mapping[str, Fixture],
    deadline_passed: bool,
) -> EscalatingGameweek:
    seen_fixtures: set[str] = set()
    entry = EscalatingGameweek(
        gameweek=gameweek, required=required, verdict=GameweekVerdict.PENDING
    )

    for pick in picks:
        if pick.fixture_id in seen_fixtures:
            raise ResolutionInvariantError(
                player_id, f"fixture {pick.fixture_id} picked twice in gameweek {gameweek}"
            )
        seen_fixtures.add(pick.fixture_id)

        fixture = fixture_for(fixtures, player_id, pick.fixture_id)
        resolved = resolve_team_pick(fixture, pick.side, gameweek, PickOutcome.DRAW)
        entry.picks.append(resolved)

        if resolved.outcome is PickOutcome.WIN:
            entry.wins += 1
            entry.goals += resolved.goals
        elif resolved.outcome is PickOutcome.LOSS:
            entry.losses += 1
        elif resolved.outcome is PickOutcome.DRAW:
            entry.draws += 1

    if entry.losses or entry.draws:
        # A single completed non-win decides the gameweek
        entry.verdict = GameweekVerdict.FAILED
    elif len(picks) < required:
        if deadline_passed:
            entry.verdict = GameweekVerdict.NO_PICK
        else:
            entry.verdict = GameweekVerdict.AWAITING
    elif entry.wins == required:
        entry.verdict = GameweekVerdict.PASSED

    return entry


def resolve_escalating(
    player_id: str,
    game: GameInstance,
    picks: Sequence[EscalatingPick],
    fixtures: Mapping[str, Fixture],
    deadline_passed: Callable[[int], bool],
) -> EscalatingResult:
    """
    Resolve an Escalating player's history.

    Any loss or draw among a gameweek's picks eliminates the player as of
    that gameweek. Goals from winning picks are a tiebreaker only.
    """
    by_gameweek: dict[int, list[EscalatingPick]] = defaultdict(list)
    for pick in picks:
        by_gameweek[pick.gameweek].append(pick)

    result = EscalatingResult(player_id=player_id)

    for gameweek in game.gameweeks_in_scope():
        required = game.required_picks(gameweek)
        gw_picks = by_gameweek.get(gameweek, [])
        if len(gw_picks) > required:
            raise ResolutionInvariantError(
                player_id,
                f"{len(gw_picks)} picks in gameweek {gameweek}, {required} required",
            )

        entry = _resolve_gameweek(
            player_id, gameweek, required, gw_picks, fixtures, deadline_passed(gameweek)
        )
        result.gameweeks.append(entry)

        if entry.verdict in (GameweekVerdict.FAILED, GameweekVerdict.NO_PICK):
            result.eliminated_gameweek = gameweek
            break

    logger.debug(
        "escalating_resolved",
        player_id=player_id,
        eliminated_gameweek=result.eliminated_gameweek,
        total_wins=result.total_wins,
        total_goals=result.total_goals,
    )
    return result
