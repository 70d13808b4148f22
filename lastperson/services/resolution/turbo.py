"""Turbo mode resolver.

Players rank result predictions for every fixture of the current gameweek.
Only the current gameweek counts; nothing carries over between gameweeks.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence

import structlog

from lastperson.models.domain import Fixture, PredictedResult, Side, TurboPick
from lastperson.services.resolution.outcomes import (
    EliminationEvent,
    PickOutcome,
    ResolutionInvariantError,
    fixture_for,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TurboPickResult:
    """A single ranked prediction."""

    preference_order: int
    fixture_id: str
    predicted_result: PredictedResult
    actual_result: Optional[PredictedResult]
    outcome: PickOutcome
    goals: int = 0
    in_streak: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "preference_order": self.preference_order,
            "fixture_id": self.fixture_id,
            "predicted_result": self.predicted_result.value,
            "actual_result": self.actual_result.value if self.actual_result else None,
            "outcome": self.outcome.value,
            "goals": self.goals,
            "in_streak": self.in_streak,
        }


@dataclass
class TurboResult:
    """Resolved Turbo slate for one player and gameweek."""

    player_id: str
    gameweek: int
    picks: list[TurboPickResult] = field(default_factory=list)
    consecutive_correct: int = 0
    total_correct: int = 0
    goals_in_correct_picks: int = 0
    missed_deadline: bool = False

    def elimination_events(self) -> Iterator[EliminationEvent]:
        if self.missed_deadline:
            yield EliminationEvent(position=None, reason=PickOutcome.NO_PICK)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "gameweek": self.gameweek,
            "consecutive_correct": self.consecutive_correct,
            "total_correct": self.total_correct,
            "goals_in_correct_picks": self.goals_in_correct_picks,
            "missed_deadline": self.missed_deadline,
            "picks": [pick.to_dict() for pick in self.picks],
        }


def _goals_for_prediction(fixture: Fixture, predicted: PredictedResult) -> int:
    if predicted is PredictedResult.AWAY_WIN:
        return fixture.score(Side.AWAY)
    # Home win, or a draw where both sides scored the same
    return fixture.score(Side.HOME)


def resolve_turbo(
    player_id: str,
    gameweek: int,
    picks: Sequence[TurboPick],
    fixtures: Mapping[str, Fixture],
    deadline_passed: bool,
) -> TurboResult:
    """
    Resolve a Turbo slate.

    consecutive_correct stops at the first incorrect prediction or the first
    fixture that has not finished; unresolved fixtures are never skipped.
    total_correct counts every correct prediction among completed fixtures.
    """
    slate = sorted(
        (pick for pick in picks if pick.gameweek == gameweek),
        key=lambda pick: pick.preference_order,
    )

    seen_orders: set[int] = set()
    for pick in slate:
        if pick.preference_order in seen_orders:
            raise ResolutionInvariantError(
                player_id, f"duplicate turbo preference order {pick.preference_order}"
            )
        seen_orders.add(pick.preference_order)

    result = TurboResult(player_id=player_id, gameweek=gameweek)
    if not slate:
        result.missed_deadline = deadline_passed
        return result

    streak_open = True
    for pick in slate:
        fixture = fixture_for(fixtures, player_id, pick.fixture_id)
        actual = fixture.full_time_result()

        if actual is None:
            outcome = PickOutcome.PENDING
        elif actual is pick.predicted_result:
            outcome = PickOutcome.CORRECT
            result.total_correct += 1
        else:
            outcome = PickOutcome.INCORRECT

        in_streak = streak_open and outcome is PickOutcome.CORRECT
        goals = 0
        if in_streak:
            goals = _goals_for_prediction(fixture, pick.predicted_result)
            result.consecutive_correct += 1
            result.goals_in_correct_picks += goals
        else:
            streak_open = False

        result.picks.append(
            TurboPickResult(
                preference_order=pick.preference_order,
                fixture_id=pick.fixture_id,
                predicted_result=pick.predicted_result,
                actual_result=actual,
                outcome=outcome,
                goals=goals,
                in_streak=in_streak,
            )
        )

    logger.debug(
        "turbo_resolved",
        player_id=player_id,
        gameweek=gameweek,
        consecutive_correct=result.consecutive_correct,
        total_correct=result.total_correct,
    )
    return result
