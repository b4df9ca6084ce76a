"""ORM models."""

from models.base import Base
from models.list import PARTICIPATING_STATUSES, List, ListItem, ListStatus
from models.penalty import ListPenalty, Penalty, PenaltyApplication
from models.ranked import RankedItem, RankedList
from models.ranking_configuration import RankingConfiguration

__all__ = [
    "Base",
    "List",
    "ListItem",
    "ListPenalty",
    "ListStatus",
    "PARTICIPATING_STATUSES",
    "Penalty",
    "PenaltyApplication",
    "RankedItem",
    "RankedList",
    "RankingConfiguration",
]
