"""Unit tests for item score aggregation and ranking."""

from __future__ import annotations

import pytest

from domain.rankings.common import ListEntry, WeightedList
from domain.rankings.parameters import RankingParameters
from domain.rankings.protocol import ItemTally, ScoringStrategy
from domain.rankings.scoring import ExponentialStrategy, ItemScoreAggregator, select_lists


def _list(list_id: int, weight: float | None, *item_ids: int) -> WeightedList:
    return WeightedList(
        list_id=list_id,
        weight=weight,
        entries=tuple(
            ListEntry(item_id=item_id, position=position)
            for position, item_id in enumerate(item_ids, start=1)
        ),
    )


def test_top_position_outranks_second_position() -> None:
    aggregator = ItemScoreAggregator(
        RankingParameters(exponent=3.0, bonus_pool_percentage=3.0, min_list_weight=1)
    )
    scores = aggregator.aggregate([_list(1, 100.0, 10, 20)])
    assert [(score.item_id, score.rank) for score in scores] == [(10, 1), (20, 2)]
    assert scores[0].score == pytest.approx(100.0)
    assert scores[1].score == pytest.approx(12.5)
    assert scores[0].score > scores[1].score


def test_larger_exponent_drops_off_faster() -> None:
    gentle = ExponentialStrategy(exponent=1.0, bonus_pool_percentage=0.0)
    steep = ExponentialStrategy(exponent=3.0, bonus_pool_percentage=0.0)
    assert gentle.position_factor(1, 10) == pytest.approx(1.0)
    assert gentle.position_factor(2, 10) == pytest.approx(0.9)
    assert steep.position_factor(2, 10) == pytest.approx(0.729)


def test_bonus_pool_rewards_items_on_several_lists() -> None:
    aggregator = ItemScoreAggregator(RankingParameters(exponent=1.0, bonus_pool_percentage=3.0))
    scores = aggregator.aggregate([_list(1, 100.0, 1, 2), _list(2, 50.0, 2)])
    by_item = {score.item_id: score for score in scores}

    assert by_item[2].score == pytest.approx(104.5)
    assert by_item[2].list_count == 2
    assert by_item[1].score == pytest.approx(100.0)
    assert [score.item_id for score in scores] == [2, 1]


def test_ties_break_on_item_id() -> None:
    aggregator = ItemScoreAggregator(RankingParameters(bonus_pool_percentage=0.0))
    scores = aggregator.aggregate([_list(1, 10.0, 7), _list(2, 10.0, 3)])
    assert [(score.item_id, score.rank) for score in scores] == [(3, 1), (7, 2)]


def test_items_on_zero_weight_lists_are_excluded() -> None:
    aggregator = ItemScoreAggregator(RankingParameters())
    scores = aggregator.aggregate([_list(1, 0.0, 9), _list(2, None, 8), _list(3, 10.0, 1)])
    assert [score.item_id for score in scores] == [1]


def test_ranks_are_dense() -> None:
    aggregator = ItemScoreAggregator(RankingParameters())
    scores = aggregator.aggregate([_list(1, 100.0, 1, 2, 3, 4)])
    assert [score.rank for score in scores] == [1, 2, 3, 4]


def test_duplicate_item_counts_once_at_best_position() -> None:
    weighted = WeightedList(
        list_id=1,
        weight=40.0,
        entries=(
            ListEntry(item_id=5, position=3),
            ListEntry(item_id=5, position=1),
            ListEntry(item_id=6, position=2),
            ListEntry(item_id=7, position=0),
        ),
    )
    tallies = ExponentialStrategy(exponent=1.0, bonus_pool_percentage=0.0).score([weighted])
    assert set(tallies) == {5, 6}
    assert tallies[5].list_count == 1
    assert tallies[5].raw_score == pytest.approx(40.0)


def test_list_limit_keeps_heaviest_lists() -> None:
    lists = [_list(1, 10.0, 1), _list(2, 30.0, 2), _list(3, 30.0, 3), _list(4, 20.0, 4)]
    assert [weighted.list_id for weighted in select_lists(lists, 2)] == [2, 3]
    assert len(select_lists(lists, None)) == 4


def test_strategy_is_pluggable() -> None:
    class FlatStrategy:
        def score(self, lists):
            tallies: dict[int, ItemTally] = {}
            for weighted in lists:
                for entry in weighted.entries:
                    tally = tallies.setdefault(entry.item_id, ItemTally())
                    tally.raw_score += 1.0
                    tally.list_count += 1
            return tallies

    strategy = FlatStrategy()
    assert isinstance(strategy, ScoringStrategy)
    assert isinstance(ExponentialStrategy(exponent=3.0, bonus_pool_percentage=3.0), ScoringStrategy)

    scores = ItemScoreAggregator(RankingParameters(), strategy=strategy).aggregate(
        [_list(1, 10.0, 4, 2), _list(2, 10.0, 2)]
    )
    assert [(score.item_id, score.score) for score in scores] == [(2, 2.0), (4, 1.0)]


@pytest.mark.parametrize(("exponent", "bonus"), [(0.0, 3.0), (3.0, -1.0), (3.0, 101.0)])
def test_strategy_rejects_out_of_range_parameters(exponent: float, bonus: float) -> None:
    with pytest.raises(ValueError):
        ExponentialStrategy(exponent=exponent, bonus_pool_percentage=bonus)
