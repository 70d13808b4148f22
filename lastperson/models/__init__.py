"""Domain models for the Last Person Standing engine."""

from lastperson.models.domain import (
    ClassicPick,
    CupPick,
    EscalatingPick,
    Fixture,
    GameInstance,
    GameMode,
    GameStatus,
    GameweekStatus,
    MatchResult,
    PickRecord,
    Player,
    PredictedResult,
    Side,
    TurboPick,
)

__all__ = [
    "ClassicPick",
    "CupPick",
    "EscalatingPick",
    "Fixture",
    "GameInstance",
    "GameMode",
    "GameStatus",
    "GameweekStatus",
    "MatchResult",
    "PickRecord",
    "Player",
    "PredictedResult",
    "Side",
    "TurboPick",
]
