"""Standings and player resolution endpoints."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from lastperson.api.dependencies import get_rules_config
from lastperson.config.rules import RulesConfig
from lastperson.models.domain import GameMode, GameStatus
from lastperson.services.history import RowFilter, build_cup_grid, build_pivot, filter_rows
from lastperson.services.resolution import CupResult, ResolutionInvariantError
from lastperson.services.snapshot import GameSnapshot

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["standings"])


class StandingsResponse(BaseModel):
    """Ranked leaderboard response."""

    game_id: str
    mode: GameMode
    rows: list[dict[str, Any]]
    excluded: list[dict[str, Any]]


class PivotResponse(BaseModel):
    """Progress grid response."""

    game_id: str
    gameweeks: list[int]
    rows: list[dict[str, Any]]


@router.post("/standings", response_model=StandingsResponse)
async def compute_standings(
    snapshot: GameSnapshot,
    rules: RulesConfig = Depends(get_rules_config),
):
    """
    Build the leaderboard for a game snapshot.

    Players whose picks break an invariant are listed under ``excluded``
    instead of failing the whole request.
    """
    engine = snapshot.build_engine(rules)
    standings = engine.build_standings(snapshot.game, snapshot.players)
    payload = standings.to_dict()
    return StandingsResponse(
        game_id=snapshot.game.id,
        mode=snapshot.game.mode,
        rows=payload["rows"],
        excluded=payload["excluded"],
    )


@router.post("/players/{player_id}/resolve")
async def resolve_player(
    player_id: str,
    snapshot: GameSnapshot,
    rules: RulesConfig = Depends(get_rules_config),
):
    """Resolve a single player's state."""
    player = snapshot.player(player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found in snapshot")

    engine = snapshot.build_engine(rules)
    try:
        state = engine.resolve_player(player, snapshot.game)
    except ResolutionInvariantError as e:
        logger.warning("resolve_player_failed", player_id=player_id, error=e.message)
        raise HTTPException(status_code=422, detail=e.message)

    payload = state.to_dict()
    if isinstance(state.result, CupResult):
        visible = snapshot.game.status is not GameStatus.PENDING
        payload["grid"] = [
            cell.to_dict()
            for cell in build_cup_grid(state.result, rules.cup.slate_size, visible)
        ]
    return payload


@router.post("/history/pivot", response_model=PivotResponse)
async def pick_history_pivot(
    snapshot: GameSnapshot,
    status: RowFilter = Query(RowFilter.ALL, description="Row filter"),
    search: Optional[str] = Query(None, description="Player name search"),
    rules: RulesConfig = Depends(get_rules_config),
):
    """Player x gameweek progress grid."""
    engine = snapshot.build_engine(rules)
    standings = engine.build_standings(snapshot.game, snapshot.players)
    states = {state.player_id: state for state in standings.states}

    rows = build_pivot(
        snapshot.game,
        snapshot.players,
        snapshot.picks_by_player(),
        snapshot.fixture_map(),
        snapshot.gameweek_statuses,
        states,
    )
    rows = filter_rows(rows, status, snapshot.game.current_gameweek, search or "")
    return PivotResponse(
        game_id=snapshot.game.id,
        gameweeks=sorted(
            gw for gw in snapshot.gameweek_statuses if gw <= snapshot.game.current_gameweek
        ),
        rows=[row.to_dict() for row in rows],
    )
