"""Domain models for Last Person Standing pools.

Fixtures and picks are read-only inputs supplied by external collaborators.
Picks are a tagged variant on ``mode`` so each resolver only ever sees the
fields its mode defines.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GameMode(str, Enum):
    """Rule variants."""
    CLASSIC = "classic"
    TURBO = "turbo"
    ESCALATING = "escalating"
    CUP = "cup"


class GameStatus(str, Enum):
    """Game lifecycle status."""
    PENDING = "pending"
    ACTIVE = "active"
    FINISHED = "finished"


class GameweekStatus(str, Enum):
    """Per-gameweek status within a game."""
    UPCOMING = "upcoming"
    OPEN = "open"        # Accepting picks
    ACTIVE = "active"    # Deadline passed, fixtures in play
    FINISHED = "finished"


class Side(str, Enum):
    """Side of a fixture."""
    HOME = "home"
    AWAY = "away"

    @property
    def opposite(self) -> "Side":
        return Side.AWAY if self is Side.HOME else Side.HOME


class PredictedResult(str, Enum):
    """Full-time result of a fixture."""
    HOME_WIN = "home_win"
    AWAY_WIN = "away_win"
    DRAW = "draw"


class MatchResult(str, Enum):
    """Result from the picked team's point of view."""
    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"


class Player(BaseModel):
    """Pool participant. Only ``id`` takes part in resolution."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = "Unknown"


class GameInstance(BaseModel):
    """
    A single pool.

    Gameweeks from ``starting_gameweek`` to ``current_gameweek`` inclusive are
    in scope for resolution.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    mode: GameMode
    starting_gameweek: int = Field(default=1, ge=1)
    current_gameweek: int = Field(default=1, ge=1)
    status: GameStatus = GameStatus.ACTIVE

    @model_validator(mode="after")
    def _check_gameweeks(self) -> "GameInstance":
        if self.current_gameweek < self.starting_gameweek:
            raise ValueError(
                f"current_gameweek {self.current_gameweek} is before "
                f"starting_gameweek {self.starting_gameweek}"
            )
        return self

    def required_picks(self, gameweek: int) -> int:
        """Escalating pick count: 1 in the starting gameweek, then +1 per gameweek."""
        return gameweek - self.starting_gameweek + 1

    def gameweeks_in_scope(self) -> list[int]:
        return list(range(self.starting_gameweek, self.current_gameweek + 1))


class Fixture(BaseModel):
    """
    Read-only projection of a fixture result.

    tier_difference is from the home team's perspective: positive means the
    home team is the higher tier, negative means the away team is.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    gameweek: Optional[int] = None
    home_team: str
    away_team: str
    home_score: Optional[int] = Field(default=None, ge=0)
    away_score: Optional[int] = Field(default=None, ge=0)
    is_completed: bool = False
    tier_difference: Optional[int] = None

    @property
    def is_resolved(self) -> bool:
        """Completed with both scores known."""
        return (
            self.is_completed
            and self.home_score is not None
            and self.away_score is not None
        )

    def team(self, side: Side) -> str:
        return self.home_team if side is Side.HOME else self.away_team

    def score(self, side: Side) -> int:
        score = self.home_score if side is Side.HOME else self.away_score
        return score or 0

    def result_for(self, side: Side) -> Optional[MatchResult]:
        """Result for the team on ``side``, or None while unresolved."""
        if not self.is_resolved:
            return None
        own, other = self.score(side), self.score(side.opposite)
        if own > other:
            return MatchResult.WIN
        if own < other:
            return MatchResult.LOSS
        return MatchResult.DRAW

    def full_time_result(self) -> Optional[PredictedResult]:
        if not self.is_resolved:
            return None
        if self.home_score > self.away_score:
            return PredictedResult.HOME_WIN
        if self.home_score < self.away_score:
            return PredictedResult.AWAY_WIN
        return PredictedResult.DRAW

    def tier_diff_from(self, side: Side) -> Optional[int]:
        """
        Tier difference from the picked team's perspective.

        Positive: picked team is the stronger side. Negative: underdog.
        """
        if self.tier_difference is None:
            return None
        return self.tier_difference if side is Side.HOME else -self.tier_difference


class _PickBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: str
    fixture_id: str


class ClassicPick(_PickBase):
    """One team per gameweek."""
    mode: Literal["classic"] = "classic"
    gameweek: int
    side: Side


class EscalatingPick(_PickBase):
    """One of ``required(gameweek)`` team picks."""
    mode: Literal["escalating"] = "escalating"
    gameweek: int
    side: Side


class TurboPick(_PickBase):
    """Ranked result prediction for the current gameweek."""
    mode: Literal["turbo"] = "turbo"
    gameweek: int
    predicted_result: PredictedResult
    preference_order: int = Field(ge=1)

    @property
    def side(self) -> str:
        """Bookkeeping side: home, away or draw."""
        if self.predicted_result is PredictedResult.HOME_WIN:
            return Side.HOME.value
        if self.predicted_result is PredictedResult.AWAY_WIN:
            return Side.AWAY.value
        return "draw"


class CupPick(_PickBase):
    """Ranked team pick in the single Cup slate."""
    mode: Literal["cup"] = "cup"
    side: Side
    preference_order: int
    gameweek: Optional[int] = None


PickRecord = Annotated[
    Union[ClassicPick, EscalatingPick, TurboPick, CupPick],
    Field(discriminator="mode"),
]
