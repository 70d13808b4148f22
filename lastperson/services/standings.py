"""Standings builder.

Ranks players with a mode-specific comparator chain. Sorting is stable, so
players that tie on every key keep the order in which they were supplied,
which makes the leaderboard deterministic for identical inputs.
"""

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Sequence

import structlog

from lastperson.config.rules import SortKey
from lastperson.services.state import PlayerGameState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExcludedPlayer:
    """A player whose resolution failed an invariant check."""

    player_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"player_id": self.player_id, "reason": self.reason}


@dataclass(frozen=True)
class StandingsRow:
    """A ranked leaderboard row."""

    position: int
    state: PlayerGameState

    def to_dict(self) -> dict[str, Any]:
        return {"position": self.position, **self.state.to_dict()}


@dataclass
class Standings:
    """Ranked leaderboard plus the players left out of it."""

    rows: list[StandingsRow] = field(default_factory=list)
    excluded: list[ExcludedPlayer] = field(default_factory=list)

    @property
    def states(self) -> list[PlayerGameState]:
        return [row.state for row in self.rows]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "excluded": [item.to_dict() for item in self.excluded],
        }


def compare_states(
    chain: Sequence[SortKey], a: PlayerGameState, b: PlayerGameState
) -> int:
    """Compare two states link by link; 0 only when every key is equal."""
    for key in chain:
        left, right = a.sort_value(key.field), b.sort_value(key.field)
        if left == right:
            continue
        if key.descending:
            return -1 if left > right else 1
        return -1 if left < right else 1
    return 0


def rank_states(
    states: Sequence[PlayerGameState], chain: Sequence[SortKey]
) -> list[StandingsRow]:
    """
    Sort states by the comparator chain.

    Python's sort is stable, so exact ties fall back to ingestion order.
    """
    ordered = sorted(
        states, key=cmp_to_key(lambda a, b: compare_states(chain, a, b))
    )
    return [StandingsRow(position=i + 1, state=state) for i, state in enumerate(ordered)]


def build_standings(
    states: Sequence[PlayerGameState],
    chain: Sequence[SortKey],
    excluded: Sequence[ExcludedPlayer] = (),
) -> Standings:
    """Build the leaderboard for already resolved players."""
    standings = Standings(rows=rank_states(states, chain), excluded=list(excluded))
    logger.debug(
        "standings_built",
        ranked=len(standings.rows),
        excluded=len(standings.excluded),
        chain=[key.field for key in chain],
    )
    return standings
