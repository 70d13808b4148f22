"""Mode resolvers for Last Person Standing."""

from lastperson.services.resolution.classic import ClassicResult, resolve_classic
from lastperson.services.resolution.cup import (
    CupResult,
    LifeLedgerEntry,
    fold_life_ledger,
    replay_recorded_outcomes,
    resolve_cup,
)
from lastperson.services.resolution.escalating import EscalatingResult, resolve_escalating
from lastperson.services.resolution.outcomes import PickOutcome, ResolutionInvariantError
from lastperson.services.resolution.turbo import TurboResult, resolve_turbo

__all__ = [
    "ClassicResult",
    "CupResult",
    "EscalatingResult",
    "LifeLedgerEntry",
    "PickOutcome",
    "ResolutionInvariantError",
    "TurboResult",
    "fold_life_ledger",
    "replay_recorded_outcomes",
    "resolve_classic",
    "resolve_cup",
    "resolve_escalating",
    "resolve_turbo",
]
