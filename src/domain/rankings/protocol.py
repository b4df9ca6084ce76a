"""Pluggable contracts for list weighting and item scoring."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from domain.rankings.common import ListSignals, ResolvedPenalty, WeightedList


@dataclass(frozen=True)
class WeightResult:
    """Final list weight plus the breakdown persisted for audit display."""

    weight: float
    details: dict[str, Any]


@dataclass
class ItemTally:
    """Running score of one item while lists are aggregated."""

    raw_score: float = 0.0
    bonus: float = 0.0
    list_count: int = 0

    @property
    def total(self) -> float:
        return self.raw_score + self.bonus


@runtime_checkable
class WeightCalculator(Protocol):
    """Turns one list's signals and resolved penalties into a weight."""

    version: int

    def calculate(
        self,
        signals: ListSignals,
        penalties: Sequence[ResolvedPenalty],
    ) -> WeightResult: ...


@runtime_checkable
class ScoringStrategy(Protocol):
    """Combines weighted list memberships into per-item tallies."""

    def score(self, lists: Sequence[WeightedList]) -> dict[int, ItemTally]: ...


__all__ = ["ItemTally", "ScoringStrategy", "WeightCalculator", "WeightResult"]
