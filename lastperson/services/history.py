"""Pick history projections.

Builds the player x gameweek grid shown on the game progress page, the
flattened pick history list and the ranked Cup grid. All projections are read
models over resolved state; none of them feed back into resolution.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from lastperson.models.domain import (
    CupPick,
    Fixture,
    GameInstance,
    GameweekStatus,
    PickRecord,
    Player,
    PredictedResult,
    Side,
    TurboPick,
)
from lastperson.services.resolution import CupResult
from lastperson.services.state import PlayerGameState


class RowFilter(str, Enum):
    """Row filters for the progress grid."""
    ALL = "all"
    ACTIVE = "active"
    ELIMINATED = "eliminated"
    PICKED = "picked"
    PENDING = "pending"


@dataclass(frozen=True)
class HistoryPick:
    """One pick as displayed in the history."""

    player_id: str
    gameweek: Optional[int]
    fixture_id: str
    fixture_label: str
    picked: str
    opponent: Optional[str]
    result: Optional[str]
    goals: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "gameweek": self.gameweek,
            "fixture_id": self.fixture_id,
            "fixture": self.fixture_label,
            "picked": self.picked,
            "opponent": self.opponent,
            "result": self.result,
            "goals": self.goals,
        }


@dataclass
class PivotCell:
    """A player's picks for one gameweek, or a placeholder awaiting a pick."""

    gameweek: int
    picks: list[HistoryPick] = field(default_factory=list)
    is_pending: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameweek": self.gameweek,
            "is_pending": self.is_pending,
            "picks": [pick.to_dict() for pick in self.picks],
        }


@dataclass
class PivotRow:
    """One player's row in the progress grid."""

    player_id: str
    display_name: str
    is_eliminated: bool
    eliminated_at: Optional[int]
    total_goals: int
    cells: dict[int, PivotCell] = field(default_factory=dict)

    def has_picked(self, gameweek: int) -> bool:
        cell = self.cells.get(gameweek)
        return cell is not None and bool(cell.picks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "display_name": self.display_name,
            "is_eliminated": self.is_eliminated,
            "eliminated_at": self.eliminated_at,
            "total_goals": self.total_goals,
            "cells": {str(gw): cell.to_dict() for gw, cell in sorted(self.cells.items())},
        }


def history_pick(pick: PickRecord, fixture: Fixture) -> HistoryPick:
    """Project a stored pick onto its fixture."""
    label = f"{fixture.home_team} vs {fixture.away_team}"

    if isinstance(pick, TurboPick):
        predicted = pick.predicted_result
        actual = fixture.full_time_result()
        if predicted is PredictedResult.DRAW:
            picked, opponent, goals_side = "Draw", None, Side.HOME
        else:
            goals_side = Side(pick.side)
            picked, opponent = fixture.team(goals_side), fixture.team(goals_side.opposite)
        result = None
        if actual is not None:
            result = "win" if actual is predicted else "loss"
        goals = fixture.score(goals_side) if result == "win" else 0
    else:
        picked = fixture.team(pick.side)
        opponent = fixture.team(pick.side.opposite)
        match_result = fixture.result_for(pick.side)
        result = match_result.value if match_result else None
        goals = fixture.score(pick.side) if match_result is not None else 0

    return HistoryPick(
        player_id=pick.player_id,
        gameweek=pick.gameweek,
        fixture_id=fixture.id,
        fixture_label=label,
        picked=picked,
        opponent=opponent,
        result=result,
        goals=goals,
    )


def build_pivot(
    game: GameInstance,
    players: Sequence[Player],
    picks: Mapping[str, Sequence[PickRecord]],
    fixtures: Mapping[str, Fixture],
    gameweek_statuses: Mapping[int, GameweekStatus],
    states: Mapping[str, PlayerGameState],
) -> list[PivotRow]:
    """
    Build the player x gameweek grid up to the current gameweek.

    Every player gets a row, including those without picks. An open
    gameweek with no pick from a surviving player gets a pending
    placeholder. Totals come from the resolved state so the grid agrees
    with the leaderboard.
    """
    gameweeks = sorted(
        gw for gw in gameweek_statuses if gw <= game.current_gameweek
    )
    rows: list[PivotRow] = []

    for player in players:
        state = states.get(player.id)
        is_eliminated = state.is_eliminated if state else False
        row = PivotRow(
            player_id=player.id,
            display_name=player.display_name,
            is_eliminated=is_eliminated,
            eliminated_at=state.eliminated_at if state else None,
            total_goals=state.total_goals if state else 0,
        )

        by_gameweek: dict[int, list[PickRecord]] = {}
        for pick in picks.get(player.id, ()):
            if isinstance(pick, CupPick) or pick.gameweek is None:
                continue
            by_gameweek.setdefault(pick.gameweek, []).append(pick)

        for gw in gameweeks:
            gw_picks = [
                history_pick(pick, fixtures[pick.fixture_id])
                for pick in by_gameweek.get(gw, [])
                if pick.fixture_id in fixtures
            ]
            if gw_picks:
                row.cells[gw] = PivotCell(gameweek=gw, picks=gw_picks)
            elif gameweek_statuses[gw] is GameweekStatus.OPEN and not is_eliminated:
                row.cells[gw] = PivotCell(gameweek=gw, is_pending=True)

        rows.append(row)

    return rows


def filter_rows(
    rows: Sequence[PivotRow],
    row_filter: RowFilter,
    gameweek: int,
    search: str = "",
) -> list[PivotRow]:
    """Filter grid rows by status, pick state in ``gameweek`` and name."""
    if row_filter is RowFilter.ACTIVE:
        selected = [row for row in rows if not row.is_eliminated]
    elif row_filter is RowFilter.ELIMINATED:
        selected = [row for row in rows if row.is_eliminated]
    elif row_filter is RowFilter.PICKED:
        selected = [row for row in rows if row.has_picked(gameweek)]
    elif row_filter is RowFilter.PENDING:
        selected = [row for row in rows if not row.has_picked(gameweek)]
    else:
        selected = list(rows)

    if search:
        needle = search.lower()
        selected = [row for row in selected if needle in row.display_name.lower()]
    return selected


HISTORY_SORT_FIELDS = {
    "player": lambda item: item.player_id,
    "gameweek": lambda item: item.gameweek or 0,
    "fixture": lambda item: item.fixture_label,
    "pick": lambda item: item.picked,
    "result": lambda item: {"win": 3, "draw": 2, "loss": 1}.get(item.result or "", 0),
    "goals": lambda item: item.goals,
}


def flatten_history(
    rows: Sequence[PivotRow], sort_by: str = "gameweek", descending: bool = True
) -> list[HistoryPick]:
    """Every pick in the grid as one sorted list."""
    if sort_by not in HISTORY_SORT_FIELDS:
        raise ValueError(f"Unknown history sort field: {sort_by}")
    items = [
        pick
        for row in rows
        for _, cell in sorted(row.cells.items())
        for pick in cell.picks
    ]
    return sorted(items, key=HISTORY_SORT_FIELDS[sort_by], reverse=descending)


@dataclass(frozen=True)
class CupGridCell:
    """One ranked slot of the Cup grid."""

    preference_order: int
    label: str
    outcome: Optional[str]
    lives_before: int = 0
    life_gained: int = 0
    could_gain_life: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "preference_order": self.preference_order,
            "label": self.label,
            "outcome": self.outcome,
            "lives_before": self.lives_before,
            "life_gained": self.life_gained,
            "could_gain_life": self.could_gain_life,
        }


def build_cup_grid(
    result: CupResult, slate_size: int, picks_visible: bool
) -> list[CupGridCell]:
    """
    Ranked slots 1..slate_size for one Cup player.

    Before the deadline picks stay hidden: players who submitted show
    ``pending`` and the rest show ``-``.
    """
    if not picks_visible:
        label = "pending" if result.entries else "-"
        return [CupGridCell(preference_order=i, label=label, outcome=None)
                for i in range(1, slate_size + 1)]

    entries = {entry.preference_order: entry for entry in result.entries}
    cells: list[CupGridCell] = []
    for rank in range(1, slate_size + 1):
        entry = entries.get(rank)
        if entry is None:
            cells.append(CupGridCell(preference_order=rank, label="-", outcome=None))
            continue
        cells.append(
            CupGridCell(
                preference_order=rank,
                label=entry.team[:3].upper(),
                outcome=entry.outcome.value,
                lives_before=entry.lives_before,
                life_gained=entry.life_gained,
                could_gain_life=entry.is_underdog,
            )
        )
    return cells
