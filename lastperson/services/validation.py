"""Pick submission validation.

Checks a submission against the eligibility, uniqueness and count rules
before it reaches the ledger. A rejected submission is never partially
stored.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from lastperson.config.rules import RulesConfig
from lastperson.models.domain import (
    ClassicPick,
    CupPick,
    Fixture,
    GameInstance,
    GameMode,
    PickRecord,
)
from lastperson.services.resolution.cup import is_eligible


class RejectionReason(str, Enum):
    """Why a submission was rejected."""
    MODE_MISMATCH = "mode_mismatch"
    PLAYER_MISMATCH = "player_mismatch"
    DEADLINE_PASSED = "deadline_passed"
    PLAYER_ELIMINATED = "player_eliminated"
    WRONG_GAMEWEEK = "wrong_gameweek"
    WRONG_PICK_COUNT = "wrong_pick_count"
    UNKNOWN_FIXTURE = "unknown_fixture"
    FIXTURE_NOT_IN_GAMEWEEK = "fixture_not_in_gameweek"
    DUPLICATE_FIXTURE = "duplicate_fixture"
    DUPLICATE_PREFERENCE_ORDER = "duplicate_preference_order"
    PREFERENCE_OUT_OF_RANGE = "preference_out_of_range"
    TEAM_ALREADY_USED = "team_already_used"
    MISSING_TIER_DATA = "missing_tier_data"
    INELIGIBLE_TIER = "ineligible_tier"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a submission."""

    ok: bool
    reason: Optional[RejectionReason] = None
    detail: Optional[str] = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: RejectionReason, detail: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, detail=detail)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason.value if self.reason else None,
            "detail": self.detail,
        }


ACCEPTED = ValidationResult.accepted()


def _check_fixtures(
    picks: Sequence[PickRecord],
    fixtures: Mapping[str, Fixture],
    gameweek: Optional[int],
) -> ValidationResult:
    counts = Counter(pick.fixture_id for pick in picks)
    for fixture_id, count in counts.items():
        if count > 1:
            return ValidationResult.rejected(
                RejectionReason.DUPLICATE_FIXTURE, f"Fixture {fixture_id} picked {count} times"
            )
    for pick in picks:
        fixture = fixtures.get(pick.fixture_id)
        if fixture is None:
            return ValidationResult.rejected(
                RejectionReason.UNKNOWN_FIXTURE, f"Fixture {pick.fixture_id} not found"
            )
        if gameweek is not None and fixture.gameweek is not None and fixture.gameweek != gameweek:
            return ValidationResult.rejected(
                RejectionReason.FIXTURE_NOT_IN_GAMEWEEK,
                f"Fixture {fixture.id} is in gameweek {fixture.gameweek}, not {gameweek}",
            )
    return ACCEPTED


def _check_ranking(picks: Sequence[PickRecord], slate_size: int) -> ValidationResult:
    orders = [pick.preference_order for pick in picks]
    for order in orders:
        if not 1 <= order <= slate_size:
            return ValidationResult.rejected(
                RejectionReason.PREFERENCE_OUT_OF_RANGE,
                f"Preference order {order} outside 1..{slate_size}",
            )
    duplicates = sorted(order for order, count in Counter(orders).items() if count > 1)
    if duplicates:
        return ValidationResult.rejected(
            RejectionReason.DUPLICATE_PREFERENCE_ORDER,
            f"Preference order used more than once: {duplicates}",
        )
    return ACCEPTED


def _check_count(picks: Sequence[PickRecord], required: int) -> ValidationResult:
    if len(picks) != required:
        return ValidationResult.rejected(
            RejectionReason.WRONG_PICK_COUNT,
            f"You must make {required} pick(s). Currently have {len(picks)}.",
        )
    return ACCEPTED


def _check_team_reuse(
    pick: ClassicPick,
    fixtures: Mapping[str, Fixture],
    previous_picks: Sequence[PickRecord],
) -> ValidationResult:
    team = fixtures[pick.fixture_id].team(pick.side)
    for earlier in previous_picks:
        if not isinstance(earlier, ClassicPick) or earlier.gameweek == pick.gameweek:
            continue
        fixture = fixtures.get(earlier.fixture_id)
        if fixture is not None and fixture.team(earlier.side) == team:
            return ValidationResult.rejected(
                RejectionReason.TEAM_ALREADY_USED,
                f"{team} already picked in gameweek {earlier.gameweek}",
            )
    return ACCEPTED


def _check_tiers(
    picks: Sequence[CupPick], fixtures: Mapping[str, Fixture], rules: RulesConfig
) -> ValidationResult:
    for pick in picks:
        fixture = fixtures[pick.fixture_id]
        diff = fixture.tier_diff_from(pick.side)
        if diff is None:
            return ValidationResult.rejected(
                RejectionReason.MISSING_TIER_DATA, f"Fixture {fixture.id} has no tier data"
            )
        if not is_eligible(fixture, pick.side, rules.cup):
            return ValidationResult.rejected(
                RejectionReason.INELIGIBLE_TIER,
                f"Cannot pick {fixture.team(pick.side)} - opponent is {diff} tiers below",
            )
    return ACCEPTED


def validate_submission(
    game: GameInstance,
    player_id: str,
    picks: Sequence[PickRecord],
    fixtures: Mapping[str, Fixture],
    rules: RulesConfig,
    *,
    deadline_passed: bool,
    gameweek: Optional[int] = None,
    previous_picks: Sequence[PickRecord] = (),
    is_eliminated: bool = False,
) -> ValidationResult:
    """
    Validate a full submission for one scope.

    Args:
        game: Game the picks are for
        player_id: Submitting player
        picks: Complete replacement set for the scope
        fixtures: Fixtures by id (must include previously picked fixtures
            for the Classic team reuse check)
        rules: Rules configuration
        deadline_passed: Whether the scope is frozen
        gameweek: Target gameweek, defaults to the game's current gameweek
        previous_picks: Player's existing picks in this game
        is_eliminated: Player's current elimination state

    Returns:
        ValidationResult, accepted or with the first failing reason
    """
    for pick in picks:
        if pick.mode != game.mode.value:
            return ValidationResult.rejected(
                RejectionReason.MODE_MISMATCH,
                f"{pick.mode} pick submitted to a {game.mode.value} game",
            )
        if pick.player_id != player_id:
            return ValidationResult.rejected(
                RejectionReason.PLAYER_MISMATCH,
                f"Pick belongs to player {pick.player_id}",
            )

    if deadline_passed:
        return ValidationResult.rejected(
            RejectionReason.DEADLINE_PASSED, "The deadline for these picks has passed"
        )

    # Turbo starts afresh every gameweek
    if is_eliminated and game.mode is not GameMode.TURBO:
        return ValidationResult.rejected(
            RejectionReason.PLAYER_ELIMINATED, "Eliminated players cannot submit picks"
        )

    if game.mode is GameMode.CUP:
        checks = (
            lambda: _check_count(picks, rules.cup.slate_size),
            lambda: _check_ranking(picks, rules.cup.slate_size),
            lambda: _check_fixtures(picks, fixtures, None),
            lambda: _check_tiers(picks, fixtures, rules),
        )
    else:
        target = gameweek if gameweek is not None else game.current_gameweek
        if target not in game.gameweeks_in_scope():
            return ValidationResult.rejected(
                RejectionReason.WRONG_GAMEWEEK,
                f"Gameweek {target} is outside gameweeks "
                f"{game.starting_gameweek}-{game.current_gameweek} of this game",
            )
        for pick in picks:
            if pick.gameweek != target:
                return ValidationResult.rejected(
                    RejectionReason.WRONG_GAMEWEEK,
                    f"Pick for gameweek {pick.gameweek} submitted to gameweek {target}",
                )

        if game.mode is GameMode.CLASSIC:
            checks = (
                lambda: _check_count(picks, 1),
                lambda: _check_fixtures(picks, fixtures, target),
                lambda: _check_team_reuse(picks[0], fixtures, previous_picks),
            )
        elif game.mode is GameMode.ESCALATING:
            checks = (
                lambda: _check_count(picks, game.required_picks(target)),
                lambda: _check_fixtures(picks, fixtures, target),
            )
        else:
            checks = (
                lambda: _check_count(picks, rules.turbo.slate_size),
                lambda: _check_ranking(picks, rules.turbo.slate_size),
                lambda: _check_fixtures(picks, fixtures, target),
            )

    for check in checks:
        result = check()
        if not result.ok:
            return result
    return ACCEPTED
