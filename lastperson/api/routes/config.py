"""Configuration API endpoints."""

from fastapi import APIRouter, Depends

from lastperson.api.dependencies import get_rules_config
from lastperson.config.rules import RulesConfig

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("/rules")
async def get_rules_configuration(rules: RulesConfig = Depends(get_rules_config)):
    """Get current game rules and standings chains."""
    return rules.to_dict()
