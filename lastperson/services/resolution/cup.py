"""Cup mode resolver and life ledger.

A Cup player submits a single slate of picks ranked 1..N across the whole
competition. The slate is resolved as a left fold in rank order that threads
a life balance through the picks:

- a win, or a draw by the underdog, succeeds and earns one life per tier of
  difference when the picked team was the underdog
- a defeat (or a non-qualifying draw) spends a life if one is available at
  that point in the sequence, otherwise it ends the run and eliminates
- an unresolved fixture halts the fold; the balance past it is unknown

Lives earned by a later pick can never save an earlier loss.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence

import structlog

from lastperson.config.rules import CupRules
from lastperson.models.domain import CupPick, Fixture, MatchResult, Side
from lastperson.services.resolution.outcomes import (
    CUP_SUCCESS_OUTCOMES,
    EliminationEvent,
    PickOutcome,
    ResolutionInvariantError,
    fixture_for,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LifeLedgerEntry:
    """State of the life ledger at one ranked pick."""

    preference_order: int
    fixture_id: str
    side: Side
    team: str
    opponent: str
    tier_diff_from_picked: int
    match_result: Optional[MatchResult]
    outcome: PickOutcome
    lives_before: int
    lives_after: int
    life_gained: int = 0
    life_spent: bool = False
    goals_counted: int = 0

    @property
    def is_underdog(self) -> bool:
        return self.tier_diff_from_picked < 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "preference_order": self.preference_order,
            "fixture_id": self.fixture_id,
            "side": self.side.value,
            "team": self.team,
            "opponent": self.opponent,
            "tier_diff_from_picked": self.tier_diff_from_picked,
            "match_result": self.match_result.value if self.match_result else None,
            "outcome": self.outcome.value,
            "lives_before": self.lives_before,
            "lives_after": self.lives_after,
            "life_gained": self.life_gained,
            "life_spent": self.life_spent,
            "goals_counted": self.goals_counted,
        }


@dataclass
class CupResult:
    """Resolved Cup slate for one player."""

    player_id: str
    entries: list[LifeLedgerEntry] = field(default_factory=list)
    streak: int = 0
    lives: int = 0
    goals_scored: int = 0
    eliminated_rank: Optional[int] = None
    missed_deadline: bool = False

    @property
    def is_active(self) -> bool:
        return self.eliminated_rank is None

    def elimination_events(self) -> Iterator[EliminationEvent]:
        if self.missed_deadline:
            yield EliminationEvent(position=1, reason=PickOutcome.NO_PICK)
        for entry in self.entries:
            if entry.outcome is PickOutcome.LOSS:
                yield EliminationEvent(position=entry.preference_order, reason=PickOutcome.LOSS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "streak": self.streak,
            "lives": self.lives,
            "goals_scored": self.goals_scored,
            "eliminated_rank": self.eliminated_rank,
            "missed_deadline": self.missed_deadline,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def tier_diff_from_picked(player_id: str, fixture: Fixture, side: Side) -> int:
    """Tier difference from the picked side; missing tier data is an invariant breach."""
    diff = fixture.tier_diff_from(side)
    if diff is None:
        raise ResolutionInvariantError(player_id, f"fixture {fixture.id} has no tier data")
    return diff


def is_eligible(fixture: Fixture, side: Side, rules: CupRules) -> bool:
    """A team may not be picked against an opponent too many tiers below it."""
    diff = fixture.tier_diff_from(side)
    return diff is not None and diff <= rules.max_tier_advantage


def _ordered_slate(
    player_id: str, picks: Sequence[CupPick], rules: CupRules
) -> list[CupPick]:
    if len(picks) != rules.slate_size:
        raise ResolutionInvariantError(
            player_id, f"cup slate has {len(picks)} picks, expected {rules.slate_size}"
        )
    ranks: set[int] = set()
    for pick in picks:
        if not 1 <= pick.preference_order <= rules.slate_size:
            raise ResolutionInvariantError(
                player_id, f"preference order {pick.preference_order} out of range"
            )
        if pick.preference_order in ranks:
            raise ResolutionInvariantError(
                player_id, f"duplicate preference order {pick.preference_order}"
            )
        ranks.add(pick.preference_order)
    return sorted(picks, key=lambda pick: pick.preference_order)


def _apply_pick(
    lives: int, pick: CupPick, fixture: Fixture, diff: int, rules: CupRules
) -> LifeLedgerEntry:
    """One step of the fold: the entry for ``pick`` given the balance before it."""
    base = dict(
        preference_order=pick.preference_order,
        fixture_id=fixture.id,
        side=pick.side,
        team=fixture.team(pick.side),
        opponent=fixture.team(pick.side.opposite),
        tier_diff_from_picked=diff,
        lives_before=lives,
    )
    match_result = fixture.result_for(pick.side)

    if match_result is None:
        return LifeLedgerEntry(
            **base, match_result=None, outcome=PickOutcome.PENDING, lives_after=lives
        )

    underdog = diff < 0
    if match_result is MatchResult.WIN or (match_result is MatchResult.DRAW and underdog):
        gained = max(0, -diff)
        goals = 0 if diff == rules.no_goals_tier_advantage else fixture.score(pick.side)
        return LifeLedgerEntry(
            **base,
            match_result=match_result,
            outcome=PickOutcome.WIN if match_result is MatchResult.WIN else PickOutcome.DRAW_SUCCESS,
            lives_after=lives + gained,
            life_gained=gained,
            goals_counted=goals,
        )

    if lives > 0:
        return LifeLedgerEntry(
            **base,
            match_result=match_result,
            outcome=PickOutcome.SAVED_BY_LIFE,
            lives_after=lives - 1,
            life_spent=True,
        )

    return LifeLedgerEntry(
        **base, match_result=match_result, outcome=PickOutcome.LOSS, lives_after=lives
    )


def _halted_entry(
    pick: CupPick, fixture: Fixture, diff: int, lives: int, outcome: PickOutcome
) -> LifeLedgerEntry:
    return LifeLedgerEntry(
        preference_order=pick.preference_order,
        fixture_id=fixture.id,
        side=pick.side,
        team=fixture.team(pick.side),
        opponent=fixture.team(pick.side.opposite),
        tier_diff_from_picked=diff,
        match_result=fixture.result_for(pick.side),
        outcome=outcome,
        lives_before=lives,
        lives_after=lives,
    )


def fold_life_ledger(
    player_id: str,
    picks: Sequence[CupPick],
    fixtures: Mapping[str, Fixture],
    rules: CupRules,
) -> list[LifeLedgerEntry]:
    """
    Fold the ranked slate into one ledger entry per pick.

    After a terminal loss the remaining picks are NOT_REACHED; after an
    unresolved fixture the remaining picks are PENDING.
    """
    resolved = []
    for pick in _ordered_slate(player_id, picks, rules):
        fixture = fixture_for(fixtures, player_id, pick.fixture_id)
        diff = tier_diff_from_picked(player_id, fixture, pick.side)
        if not is_eligible(fixture, pick.side, rules):
            raise ResolutionInvariantError(
                player_id,
                f"rank {pick.preference_order} picks {fixture.team(pick.side)} "
                f"against a side {diff} tiers below",
            )
        resolved.append((pick, fixture, diff))

    entries: list[LifeLedgerEntry] = []
    lives = 0
    halted: Optional[PickOutcome] = None

    for pick, fixture, diff in resolved:
        if halted is not None:
            entries.append(_halted_entry(pick, fixture, diff, lives, halted))
            continue

        entry = _apply_pick(lives, pick, fixture, diff, rules)
        if entry.lives_after < 0:
            raise ResolutionInvariantError(
                player_id, f"negative life balance at rank {pick.preference_order}"
            )
        entries.append(entry)
        lives = entry.lives_after

        if entry.outcome is PickOutcome.LOSS:
            halted = PickOutcome.NOT_REACHED
        elif entry.outcome is PickOutcome.PENDING:
            halted = PickOutcome.PENDING

    return entries


def resolve_cup(
    player_id: str,
    picks: Sequence[CupPick],
    fixtures: Mapping[str, Fixture],
    deadline_passed: bool,
    rules: CupRules,
) -> CupResult:
    """
    Resolve a Cup slate.

    Args:
        player_id: Player being resolved
        picks: The player's ranked Cup slate
        fixtures: Fixtures by id
        deadline_passed: Whether the slate deadline has passed
        rules: Cup rules

    Returns:
        CupResult with streak, remaining lives and goals from successful picks
    """
    result = CupResult(player_id=player_id)
    if not picks:
        if deadline_passed:
            result.missed_deadline = True
            result.eliminated_rank = 1
        return result

    result.entries = fold_life_ledger(player_id, picks, fixtures, rules)

    for entry in result.entries:
        if entry.outcome not in CUP_SUCCESS_OUTCOMES:
            break
        result.streak += 1
        result.goals_scored += entry.goals_counted

    # Halted entries carry the balance forward unchanged
    result.lives = result.entries[-1].lives_after

    for entry in result.entries:
        if entry.outcome is PickOutcome.LOSS:
            result.eliminated_rank = entry.preference_order
            break

    logger.debug(
        "cup_resolved",
        player_id=player_id,
        streak=result.streak,
        lives=result.lives,
        eliminated_rank=result.eliminated_rank,
    )
    return result


@dataclass(frozen=True)
class RecordedCupOutcome:
    """A Cup outcome as recorded by an external settlement procedure."""

    preference_order: int
    outcome: Optional[PickOutcome]
    life_gained: int = 0
    goals_counted: int = 0


@dataclass
class CupReplay:
    """Recorded outcomes reconciled against the life balance at each rank."""

    outcomes: list[tuple[int, PickOutcome, int]] = field(default_factory=list)
    streak: int = 0
    lives: int = 0
    goals_scored: int = 0
    eliminated_rank: Optional[int] = None


def replay_recorded_outcomes(recorded: Sequence[RecordedCupOutcome]) -> CupReplay:
    """
    Reconcile externally recorded Cup outcomes with the life ledger rules.

    A recorded SAVED_BY_LIFE at a rank where no life was available is
    reclassified as the terminal LOSS. Each item of ``outcomes`` is
    ``(preference_order, outcome, lives_before)``.
    """
    replay = CupReplay()
    lives = 0
    halted: Optional[PickOutcome] = None

    for item in sorted(recorded, key=lambda r: r.preference_order):
        if halted is not None:
            replay.outcomes.append((item.preference_order, halted, lives))
            continue

        lives_before = lives
        outcome = item.outcome or PickOutcome.PENDING

        if outcome in (PickOutcome.WIN, PickOutcome.DRAW_SUCCESS):
            lives += max(0, item.life_gained)
            replay.streak += 1
            replay.goals_scored += item.goals_counted
        elif outcome is PickOutcome.SAVED_BY_LIFE and lives > 0:
            lives -= 1
            replay.streak += 1
        elif outcome is PickOutcome.PENDING:
            halted = PickOutcome.PENDING
        else:
            if outcome is PickOutcome.SAVED_BY_LIFE:
                logger.warning(
                    "cup_saved_without_life_reclassified",
                    preference_order=item.preference_order,
                )
            outcome = PickOutcome.LOSS
            replay.eliminated_rank = item.preference_order
            halted = PickOutcome.NOT_REACHED

        replay.outcomes.append((item.preference_order, outcome, lives_before))

    replay.lives = lives
    return replay
