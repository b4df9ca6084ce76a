"""Shared types for list weighting and item scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from domain.media import Domain, MediaType


class DynamicType(str, Enum):
    """Penalties whose deduction is derived from a list's own attributes."""

    NUMBER_OF_VOTERS = "number_of_voters"
    VOTER_NAMES_UNKNOWN = "voter_names_unknown"
    VOTER_COUNT_UNKNOWN = "voter_count_unknown"
    VOTER_COUNT_ESTIMATED = "voter_count_estimated"
    CATEGORY_SPECIFIC = "category_specific"
    LOCATION_SPECIFIC = "location_specific"
    NUM_YEARS_COVERED = "num_years_covered"


class PenaltySource(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class ListSignals:
    """Quality signals of one source list, as read at recalculation time."""

    list_id: int
    domain: Domain
    name: str = ""
    number_of_voters: int | None = None
    high_quality_source: bool = False
    voter_count_estimated: bool = False
    voter_count_unknown: bool = False
    voter_names_unknown: bool = False
    category_specific: bool = False
    location_specific: bool = False
    yearly_award: bool = False
    year_published: int | None = None
    estimated_quality: int = 0
    num_years_covered: int | None = None


@dataclass(frozen=True)
class PenaltyRef:
    """Read-only view of a penalty definition."""

    penalty_id: int
    name: str
    media_type: MediaType
    dynamic_type: DynamicType | None = None

    @property
    def dynamic(self) -> bool:
        return self.dynamic_type is not None


@dataclass(frozen=True)
class ResolvedPenalty:
    """One percentage deduction that applies to a list under a configuration."""

    penalty_id: int
    penalty_name: str
    source: PenaltySource
    value: float
    dynamic_type: DynamicType | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ListEntry:
    """One verified membership of an item in a list."""

    item_id: int
    position: int


@dataclass(frozen=True)
class WeightedList:
    """A list's current weight together with its ordered entries."""

    list_id: int
    weight: float | None
    entries: tuple[ListEntry, ...]


@dataclass(frozen=True)
class ItemScore:
    """Final materialized score and rank of one item."""

    item_id: int
    score: float
    rank: int
    list_count: int


__all__ = [
    "DynamicType",
    "ItemScore",
    "ListEntry",
    "ListSignals",
    "PenaltyRef",
    "PenaltySource",
    "ResolvedPenalty",
    "WeightedList",
]
