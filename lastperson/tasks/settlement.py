"""Game settlement task.

Rebuilds a game's standings from a snapshot of picks and fixture results.

Settlement is a pure recomputation: running it again over the same snapshot
returns the same leaderboard, so retries and duplicate deliveries are safe.
"""

from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from lastperson.services.snapshot import GameSnapshot
from lastperson.tasks import celery_app

logger = structlog.get_logger(__name__)


def settle_snapshot(snapshot: GameSnapshot) -> dict[str, Any]:
    """Resolve every player and return the serialized leaderboard with run stats."""
    started_at = datetime.now(timezone.utc)
    engine = snapshot.build_engine()
    standings = engine.build_standings(snapshot.game, snapshot.players)

    stats = {
        "players_processed": len(snapshot.players),
        "players_ranked": len(standings.rows),
        "players_eliminated": sum(1 for state in standings.states if state.is_eliminated),
        "players_excluded": len(standings.excluded),
    }
    logger.info(
        "settlement_complete",
        game_id=snapshot.game.id,
        mode=snapshot.game.mode.value,
        duration_seconds=(datetime.now(timezone.utc) - started_at).total_seconds(),
        **stats,
    )
    return {
        "game_id": snapshot.game.id,
        "mode": snapshot.game.mode.value,
        "stats": stats,
        "standings": standings.to_dict(),
    }


@celery_app.task(bind=True, soft_time_limit=120, time_limit=150)
def settle_game(self, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Settle one game from a JSON snapshot payload.

    A malformed payload is logged and reported in the result rather than
    retried; retrying cannot fix it.
    """
    try:
        snapshot = GameSnapshot.model_validate(payload)
    except ValidationError as e:
        logger.error(
            "settlement_payload_invalid",
            task_id=self.request.id,
            error_count=e.error_count(),
        )
        return {"error": "invalid_payload", "detail": str(e)}

    return settle_snapshot(snapshot)
