"""Elimination tracking.

Folds any resolver's outcome stream into a single verdict per player. The
position is a gameweek for Classic and Escalating, a pick rank for Cup and
not applicable for Turbo, which starts afresh every gameweek.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from lastperson.services.resolution import (
    ClassicResult,
    CupResult,
    EscalatingResult,
    PickOutcome,
    TurboResult,
)

ModeResult = Union[ClassicResult, TurboResult, EscalatingResult, CupResult]


@dataclass(frozen=True)
class EliminationVerdict:
    """Whether a player is out, and since when."""

    is_eliminated: bool
    eliminated_at: Optional[int] = None
    reason: Optional[PickOutcome] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_eliminated": self.is_eliminated,
            "eliminated_at": self.eliminated_at,
            "reason": self.reason.value if self.reason else None,
        }


ACTIVE = EliminationVerdict(is_eliminated=False)


def track_elimination(result: ModeResult) -> EliminationVerdict:
    """Only the first eliminating event counts."""
    for event in result.elimination_events():
        return EliminationVerdict(
            is_eliminated=True,
            eliminated_at=event.position,
            reason=event.reason,
        )
    return ACTIVE
