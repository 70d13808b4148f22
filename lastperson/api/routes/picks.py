"""Pick validation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lastperson.api.dependencies import get_rules_config
from lastperson.config.rules import RulesConfig
from lastperson.models.domain import PickRecord
from lastperson.services.snapshot import GameSnapshot

router = APIRouter(prefix="/api/picks", tags=["picks"])


class ValidatePicksRequest(BaseModel):
    """A proposed submission together with the game it targets."""

    snapshot: GameSnapshot
    player_id: str
    picks: list[PickRecord] = Field(default_factory=list)
    gameweek: Optional[int] = None


class ValidatePicksResponse(BaseModel):
    """Validation outcome."""

    ok: bool
    reason: Optional[str] = None
    detail: Optional[str] = None


@router.post("/validate", response_model=ValidatePicksResponse)
async def validate_picks(
    request: ValidatePicksRequest,
    rules: RulesConfig = Depends(get_rules_config),
):
    """
    Validate a submission before it is persisted.

    A rejection carries the specific reason; nothing is stored either way.
    """
    player = request.snapshot.player(request.player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found in snapshot")

    engine = request.snapshot.build_engine(rules)
    result = engine.validate_pick(
        request.snapshot.game, player, request.picks, request.gameweek
    )
    return ValidatePicksResponse(**result.to_dict())
