"""Collaborator interfaces consumed by the engine, with in-memory implementations.

Persistence, fixture ingestion and deadline scheduling live outside the
engine. The protocols below are all it needs from them.
"""

from typing import Iterable, Optional, Protocol

from lastperson.models.domain import Fixture, GameInstance, PickRecord


class FixtureSource(Protocol):
    """Fixture results supplied by the data-ingestion collaborator."""

    def get_fixture(self, fixture_id: str) -> Optional[Fixture]: ...


class PickSource(Protocol):
    """Pick records supplied by the persistence collaborator."""

    def get_picks(self, player_id: str, game: GameInstance) -> list[PickRecord]: ...


class DeadlineSource(Protocol):
    """Deadline state supplied by the scheduling collaborator."""

    def is_deadline_passed(self, game: GameInstance, gameweek: int) -> bool: ...


class InMemoryFixtureSource:
    """Fixtures held in a dict. Later updates replace earlier ones."""

    def __init__(self, fixtures: Iterable[Fixture] = ()):
        self._fixtures: dict[str, Fixture] = {}
        for fixture in fixtures:
            self.upsert(fixture)

    def upsert(self, fixture: Fixture) -> None:
        self._fixtures[fixture.id] = fixture

    def get_fixture(self, fixture_id: str) -> Optional[Fixture]:
        return self._fixtures.get(fixture_id)

    def __len__(self) -> int:
        return len(self._fixtures)


class StaticDeadlines:
    """Deadline state from a fixed set of gameweeks whose deadline has passed."""

    def __init__(self, passed_gameweeks: Iterable[int] = ()):
        self._passed = frozenset(passed_gameweeks)

    def is_deadline_passed(self, game: GameInstance, gameweek: int) -> bool:
        return gameweek in self._passed
