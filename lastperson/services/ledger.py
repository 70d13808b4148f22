"""Pick ledger.

Stores each player's picks with replace semantics: a submission overwrites
the whole previous set for its scope, which is one gameweek for Classic,
Escalating and Turbo and the whole game for Cup. Once the scope's deadline
has passed the ledger refuses further submissions but stays readable.
"""

from collections import defaultdict
from typing import Optional, Sequence

import structlog

from lastperson.models.domain import GameInstance, GameMode, PickRecord
from lastperson.services.sources import DeadlineSource

logger = structlog.get_logger(__name__)

ScopeKey = tuple[str, str, Optional[int]]


class DeadlinePassedError(Exception):
    """Submission arrived after the scope's deadline."""


def scope_gameweek(game: GameInstance, gameweek: Optional[int]) -> Optional[int]:
    """Cup slates span the whole game; every other mode is per gameweek."""
    if game.mode is GameMode.CUP:
        return None
    return gameweek if gameweek is not None else game.current_gameweek


def deadline_gameweek(game: GameInstance, gameweek: Optional[int]) -> int:
    """The gameweek whose deadline freezes a scope. Cup slates lock at the start."""
    if game.mode is GameMode.CUP:
        return game.starting_gameweek
    return gameweek if gameweek is not None else game.current_gameweek


class PickLedger:
    """In-memory pick ledger for one or more games."""

    def __init__(self, deadlines: Optional[DeadlineSource] = None):
        self.deadlines = deadlines
        self._scopes: dict[ScopeKey, list[PickRecord]] = {}
        self._players: dict[str, list[str]] = defaultdict(list)

    def _key(self, game: GameInstance, player_id: str, gameweek: Optional[int]) -> ScopeKey:
        return (game.id, player_id, scope_gameweek(game, gameweek))

    def submit(
        self,
        game: GameInstance,
        player_id: str,
        picks: Sequence[PickRecord],
        gameweek: Optional[int] = None,
    ) -> None:
        """
        Replace the player's picks for a scope.

        Raises:
            DeadlinePassedError: the scope is frozen
            ValueError: picks belong to another mode, player or gameweek
        """
        locked_at = deadline_gameweek(game, gameweek)
        if self.deadlines is not None and self.deadlines.is_deadline_passed(game, locked_at):
            logger.info(
                "pick_submission_after_deadline",
                game_id=game.id,
                player_id=player_id,
                gameweek=locked_at,
            )
            raise DeadlinePassedError(
                f"Deadline for gameweek {locked_at} has passed"
            )

        target = scope_gameweek(game, gameweek)
        for pick in picks:
            if pick.mode != game.mode.value:
                raise ValueError(f"{pick.mode} pick submitted to a {game.mode.value} game")
            if pick.player_id != player_id:
                raise ValueError(f"Pick belongs to player {pick.player_id}, not {player_id}")
            if target is not None and pick.gameweek != target:
                raise ValueError(f"Pick for gameweek {pick.gameweek} submitted to {target}")

        self._store(game, player_id, target, picks)
        logger.info(
            "picks_submitted",
            game_id=game.id,
            player_id=player_id,
            gameweek=target,
            picks=len(picks),
        )

    def load(self, game: GameInstance, picks: Sequence[PickRecord]) -> None:
        """
        Load persisted picks without deadline checks.

        Used to rebuild the ledger from a snapshot; each scope in ``picks``
        replaces whatever the ledger held for it.
        """
        grouped: dict[ScopeKey, list[PickRecord]] = {}
        for pick in picks:
            key = self._key(game, pick.player_id, pick.gameweek)
            grouped.setdefault(key, []).append(pick)
        for (_, player_id, gameweek), scope_picks in grouped.items():
            self._store(game, player_id, gameweek, scope_picks)

    def _store(
        self,
        game: GameInstance,
        player_id: str,
        gameweek: Optional[int],
        picks: Sequence[PickRecord],
    ) -> None:
        self._scopes[(game.id, player_id, gameweek)] = list(picks)
        if player_id not in self._players[game.id]:
            self._players[game.id].append(player_id)

    def get_picks(self, player_id: str, game: GameInstance) -> list[PickRecord]:
        """All of a player's picks for a game, by gameweek then preference order."""
        picks: list[PickRecord] = []
        scopes = sorted(
            (key for key in self._scopes if key[0] == game.id and key[1] == player_id),
            key=lambda key: -1 if key[2] is None else key[2],
        )
        for key in scopes:
            picks.extend(
                sorted(
                    self._scopes[key],
                    key=lambda pick: getattr(pick, "preference_order", 0),
                )
            )
        return picks

    def players(self, game: GameInstance) -> list[str]:
        """Player ids with picks in a game, in first-submission order."""
        return list(self._players.get(game.id, []))
