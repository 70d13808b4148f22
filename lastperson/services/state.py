"""Derived per-player game state."""

from dataclasses import dataclass
from typing import Any, Optional

from lastperson.models.domain import GameMode, Player
from lastperson.services.elimination import EliminationVerdict, ModeResult
from lastperson.services.resolution import (
    ClassicResult,
    CupResult,
    EscalatingResult,
    TurboResult,
)
from lastperson.services.resolution.escalating import GameweekVerdict


@dataclass(frozen=True)
class PlayerGameState:
    """
    Everything the leaderboard knows about one player.

    Never stored or updated in place: it is rebuilt from picks and fixture
    results on every resolution.
    """

    player: Player
    mode: GameMode
    result: ModeResult
    verdict: EliminationVerdict

    @property
    def player_id(self) -> str:
        return self.player.id

    @property
    def is_eliminated(self) -> bool:
        return self.verdict.is_eliminated

    @property
    def is_active(self) -> bool:
        return not self.verdict.is_eliminated

    @property
    def eliminated_at(self) -> Optional[int]:
        return self.verdict.eliminated_at

    @property
    def lives(self) -> int:
        if isinstance(self.result, CupResult):
            return self.result.lives
        return 0

    @property
    def streak(self) -> int:
        result = self.result
        if isinstance(result, CupResult):
            return result.streak
        if isinstance(result, TurboResult):
            return result.consecutive_correct
        if isinstance(result, EscalatingResult):
            return sum(1 for gw in result.gameweeks if gw.verdict is GameweekVerdict.PASSED)
        return result.wins

    @property
    def total_goals(self) -> int:
        result = self.result
        if isinstance(result, CupResult):
            return result.goals_scored
        if isinstance(result, TurboResult):
            return result.goals_in_correct_picks
        return result.total_goals

    def sort_value(self, field: str) -> Any:
        """Value of a standings field, looked up on the state then on the mode result."""
        if field in _STATE_FIELDS:
            value = getattr(self, field)
        elif hasattr(self.result, field):
            value = getattr(self.result, field)
        else:
            raise ValueError(f"Unknown standings field for {self.mode.value}: {field}")
        if isinstance(value, bool):
            return int(value)
        return value if value is not None else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player.id,
            "display_name": self.player.display_name,
            "mode": self.mode.value,
            "is_eliminated": self.is_eliminated,
            "eliminated_at": self.eliminated_at,
            "elimination_reason": self.verdict.reason.value if self.verdict.reason else None,
            "lives": self.lives,
            "streak": self.streak,
            "total_goals": self.total_goals,
            "detail": self.result.to_dict(),
        }


_STATE_FIELDS = frozenset(
    {"is_active", "is_eliminated", "eliminated_at", "lives", "streak", "total_goals"}
)
