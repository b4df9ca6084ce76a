"""List weighting and item scoring domain modules."""

from domain.rankings.common import (
    DynamicType,
    ItemScore,
    ListEntry,
    ListSignals,
    PenaltyRef,
    PenaltySource,
    ResolvedPenalty,
    WeightedList,
)
from domain.rankings.parameters import RankingParameters

__all__ = [
    "DynamicType",
    "ItemScore",
    "ListEntry",
    "ListSignals",
    "PenaltyRef",
    "PenaltySource",
    "RankingParameters",
    "ResolvedPenalty",
    "WeightedList",
]
