"""Item score aggregation across weighted lists."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from domain.rankings.common import ItemScore, WeightedList
from domain.rankings.parameters import RankingParameters
from domain.rankings.protocol import ItemTally, ScoringStrategy

logger = logging.getLogger(__name__)

SCORE_DIGITS = 2


class ExponentialStrategy:
    """Position-decayed list contributions plus a cross-list appearance bonus pool.

    A membership at ``position`` in a list of length ``n`` contributes
    ``weight * ((n + 1 - position) / n) ** exponent``; position 1 always earns the full
    list weight and larger exponents drop off faster. ``bonus_pool_percentage`` of the
    summed weight of contributing lists is then shared among items that appear on more
    than one list, proportionally to their extra appearances.
    """

    def __init__(self, *, exponent: float, bonus_pool_percentage: float) -> None:
        if exponent <= 0.0:
            raise ValueError("exponent must be > 0")
        if bonus_pool_percentage < 0.0 or bonus_pool_percentage > 100.0:
            raise ValueError("bonus_pool_percentage must be between 0 and 100")
        self.exponent = exponent
        self.bonus_pool_percentage = bonus_pool_percentage

    def position_factor(self, position: int, list_length: int) -> float:
        return ((list_length + 1 - position) / float(list_length)) ** self.exponent

    def score(self, lists: Sequence[WeightedList]) -> dict[int, ItemTally]:
        tallies: dict[int, ItemTally] = {}
        total_weight = 0.0

        for weighted_list in lists:
            weight = weighted_list.weight
            if weight is None or weight <= 0.0:
                continue

            positions = _best_positions(weighted_list)
            if not positions:
                continue

            list_length = max(len(positions), max(positions.values()))
            total_weight += weight
            for item_id, position in positions.items():
                tally = tallies.setdefault(item_id, ItemTally())
                tally.raw_score += weight * self.position_factor(position, list_length)
                tally.list_count += 1

        self._distribute_bonus_pool(tallies, total_weight)
        return tallies

    def _distribute_bonus_pool(self, tallies: Mapping[int, ItemTally], total_weight: float) -> None:
        pool = total_weight * (self.bonus_pool_percentage / 100.0)
        shares = {
            item_id: tally.list_count - 1
            for item_id, tally in tallies.items()
            if tally.list_count > 1
        }
        total_shares = sum(shares.values())
        if pool <= 0.0 or total_shares == 0:
            return

        for item_id, share in shares.items():
            tallies[item_id].bonus = pool * (share / total_shares)


def _best_positions(weighted_list: WeightedList) -> dict[int, int]:
    positions: dict[int, int] = {}
    for entry in weighted_list.entries:
        if entry.position <= 0:
            logger.warning(
                "Skipping item_id=%s in list_id=%s: invalid position=%s",
                entry.item_id,
                weighted_list.list_id,
                entry.position,
            )
            continue
        current = positions.get(entry.item_id)
        if current is None or entry.position < current:
            positions[entry.item_id] = entry.position
    return positions


def select_lists(lists: Sequence[WeightedList], list_limit: int | None) -> list[WeightedList]:
    """Keep positively weighted lists, capped to the ``list_limit`` heaviest ones."""
    weighted = [
        weighted_list
        for weighted_list in lists
        if weighted_list.weight is not None and weighted_list.weight > 0.0
    ]
    if list_limit is None:
        return weighted
    ordered = sorted(weighted, key=lambda item: (-float(item.weight or 0.0), item.list_id))
    return ordered[:list_limit]


def rank_items(tallies: Mapping[int, ItemTally]) -> list[ItemScore]:
    """Assign gapless ranks by rounded score descending, breaking ties on item id."""
    rounded = [
        (item_id, round(tally.total, SCORE_DIGITS), tally.list_count)
        for item_id, tally in tallies.items()
        if tally.list_count > 0 and tally.total > 0.0
    ]
    rounded.sort(key=lambda row: (-row[1], row[0]))
    return [
        ItemScore(item_id=item_id, score=score, rank=rank, list_count=list_count)
        for rank, (item_id, score, list_count) in enumerate(rounded, start=1)
    ]


class ItemScoreAggregator:
    """Scores and ranks every item reachable from a configuration's weighted lists."""

    def __init__(
        self,
        params: RankingParameters,
        *,
        strategy: ScoringStrategy | None = None,
    ) -> None:
        self.params = params
        self.strategy = strategy or ExponentialStrategy(
            exponent=params.exponent,
            bonus_pool_percentage=params.bonus_pool_percentage,
        )

    def aggregate(self, lists: Sequence[WeightedList]) -> list[ItemScore]:
        selected = select_lists(lists, self.params.list_limit)
        return rank_items(self.strategy.score(selected))


__all__ = [
    "ExponentialStrategy",
    "ItemScoreAggregator",
    "rank_items",
    "select_lists",
]
