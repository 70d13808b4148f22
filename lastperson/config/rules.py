"""Game rules configuration.

Rules and leaderboard ordering are read from the ``rules`` and ``standings``
blocks of defaults.yaml. Every value has an in-code default so the engine
still runs when the file is missing.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from lastperson.config.settings import get_settings
from lastperson.models.domain import GameMode


@dataclass(frozen=True)
class ClassicRules:
    """Classic mode rules."""
    first_gameweek_exempt: bool = False


@dataclass(frozen=True)
class TurboRules:
    """Turbo mode rules."""
    slate_size: int = 10


@dataclass(frozen=True)
class CupRules:
    """Cup mode rules."""
    slate_size: int = 10
    max_tier_advantage: int = 1
    no_goals_tier_advantage: int = 1


@dataclass(frozen=True)
class SortKey:
    """One link of a standings comparator chain."""
    field: str
    descending: bool = True


DEFAULT_STANDINGS: dict[GameMode, tuple[SortKey, ...]] = {
    GameMode.CLASSIC: (
        SortKey("is_active"),
        SortKey("survived_until"),
        SortKey("total_goals"),
    ),
    GameMode.TURBO: (
        SortKey("consecutive_correct"),
        SortKey("goals_in_correct_picks"),
    ),
    GameMode.ESCALATING: (
        SortKey("is_active"),
        SortKey("total_wins"),
        SortKey("total_goals"),
    ),
    GameMode.CUP: (
        SortKey("streak"),
        SortKey("lives"),
        SortKey("goals_scored"),
    ),
}


@dataclass(frozen=True)
class RulesConfig:
    """Complete rules configuration for all game modes."""

    classic: ClassicRules = field(default_factory=ClassicRules)
    turbo: TurboRules = field(default_factory=TurboRules)
    cup: CupRules = field(default_factory=CupRules)
    standings: dict[GameMode, tuple[SortKey, ...]] = field(
        default_factory=lambda: dict(DEFAULT_STANDINGS)
    )

    def __post_init__(self) -> None:
        if self.cup.slate_size < 1:
            raise ValueError(f"Cup slate size must be positive: {self.cup.slate_size}")
        if self.turbo.slate_size < 1:
            raise ValueError(f"Turbo slate size must be positive: {self.turbo.slate_size}")
        for mode in GameMode:
            if not self.standings.get(mode):
                raise ValueError(f"Missing standings chain for mode: {mode.value}")

    def standings_for(self, mode: GameMode) -> tuple[SortKey, ...]:
        """Get the comparator chain for a mode."""
        return self.standings[mode]

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "RulesConfig":
        """
        Build rules from a parsed defaults.yaml document.

        Missing blocks fall back to the in-code defaults.
        """
        rules = config.get("rules", {}) or {}
        standings_config = config.get("standings", {}) or {}

        standings = dict(DEFAULT_STANDINGS)
        for mode_name, chain in standings_config.items():
            try:
                mode = GameMode(mode_name)
            except ValueError as e:
                raise ValueError(f"Unknown mode in standings config: {mode_name}") from e
            standings[mode] = tuple(
                SortKey(field=link["field"], descending=link.get("descending", True))
                for link in chain
            )

        return cls(
            classic=ClassicRules(**(rules.get("classic") or {})),
            turbo=TurboRules(**(rules.get("turbo") or {})),
            cup=CupRules(**(rules.get("cup") or {})),
            standings=standings,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "rules": {
                "classic": {"first_gameweek_exempt": self.classic.first_gameweek_exempt},
                "turbo": {"slate_size": self.turbo.slate_size},
                "cup": {
                    "slate_size": self.cup.slate_size,
                    "max_tier_advantage": self.cup.max_tier_advantage,
                    "no_goals_tier_advantage": self.cup.no_goals_tier_advantage,
                },
            },
            "standings": {
                mode.value: [
                    {"field": key.field, "descending": key.descending} for key in chain
                ]
                for mode, chain in self.standings.items()
            },
        }


@lru_cache
def get_rules() -> RulesConfig:
    """Get cached rules loaded from defaults.yaml."""
    return RulesConfig.from_dict(get_settings().load_defaults_config())
