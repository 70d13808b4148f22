"""Self-contained game snapshots.

A snapshot carries everything resolution needs for one game: the game,
its players, fixture results, stored picks and deadline state. The API and
the settlement task both resolve from snapshots, through the same engine.
"""

from typing import Optional

from pydantic import BaseModel, Field

from lastperson.config.rules import RulesConfig
from lastperson.models.domain import (
    Fixture,
    GameInstance,
    GameweekStatus,
    PickRecord,
    Player,
)
from lastperson.services.engine import ResolutionEngine
from lastperson.services.ledger import PickLedger
from lastperson.services.resolution.outcomes import index_fixtures
from lastperson.services.sources import InMemoryFixtureSource, StaticDeadlines


class GameSnapshot(BaseModel):
    """All inputs for resolving one game."""

    game: GameInstance
    players: list[Player] = Field(default_factory=list)
    fixtures: list[Fixture] = Field(default_factory=list)
    picks: list[PickRecord] = Field(default_factory=list)
    deadlines_passed: list[int] = Field(
        default_factory=list,
        description="Gameweeks whose pick deadline has passed",
    )
    gameweek_statuses: dict[int, GameweekStatus] = Field(default_factory=dict)

    def player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def fixture_map(self) -> dict[str, Fixture]:
        return index_fixtures(self.fixtures)

    def picks_by_player(self) -> dict[str, list[PickRecord]]:
        grouped: dict[str, list[PickRecord]] = {}
        for pick in self.picks:
            grouped.setdefault(pick.player_id, []).append(pick)
        return grouped

    def build_engine(self, rules: Optional[RulesConfig] = None) -> ResolutionEngine:
        """Engine backed by in-memory collaborators holding this snapshot."""
        deadlines = StaticDeadlines(self.deadlines_passed)
        ledger = PickLedger(deadlines)
        ledger.load(self.game, self.picks)
        return ResolutionEngine(
            fixtures=InMemoryFixtureSource(self.fixtures),
            picks=ledger,
            deadlines=deadlines,
            rules=rules,
        )
