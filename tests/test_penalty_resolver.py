"""Unit tests for static and dynamic penalty resolution."""

from __future__ import annotations

import pytest

from domain.media import Domain, MediaType
from domain.rankings.common import DynamicType, ListSignals, PenaltyRef, PenaltySource
from domain.rankings.penalties import (
    PenaltyContext,
    PenaltyResolver,
    compute_median_voter_count,
)

OBSCURE = PenaltyRef(penalty_id=1, name="Obscure publication", media_type=MediaType.CROSS_MEDIA)
CRITICS_ONLY = PenaltyRef(penalty_id=2, name="Critics only", media_type=MediaType.MUSIC)
UNPRICED = PenaltyRef(penalty_id=3, name="No application", media_type=MediaType.CROSS_MEDIA)
BOOKS_ONLY = PenaltyRef(penalty_id=4, name="Books only", media_type=MediaType.BOOKS)

VOTERS = PenaltyRef(
    penalty_id=10,
    name="Voter count",
    media_type=MediaType.CROSS_MEDIA,
    dynamic_type=DynamicType.NUMBER_OF_VOTERS,
)
NAMES_UNKNOWN = PenaltyRef(
    penalty_id=11,
    name="Voter names unknown",
    media_type=MediaType.CROSS_MEDIA,
    dynamic_type=DynamicType.VOTER_NAMES_UNKNOWN,
)
YEARS_COVERED = PenaltyRef(
    penalty_id=12,
    name="Narrow time span",
    media_type=MediaType.CROSS_MEDIA,
    dynamic_type=DynamicType.NUM_YEARS_COVERED,
)
BOOKS_VOTERS = PenaltyRef(
    penalty_id=13,
    name="Books voter count",
    media_type=MediaType.BOOKS,
    dynamic_type=DynamicType.NUMBER_OF_VOTERS,
)


def _resolver(*, median: float | None = 100.0, dynamic=(VOTERS, NAMES_UNKNOWN, YEARS_COVERED)) -> PenaltyResolver:
    return PenaltyResolver(
        PenaltyContext(
            domain=Domain.MUSIC_ALBUMS,
            applications={1: 20, 2: 30, 4: 60, 10: 40, 11: 25, 12: 50, 13: 70},
            dynamic_penalties=tuple(dynamic),
            median_voter_count=median,
            reference_year=2026,
        )
    )


def _signals(**overrides) -> ListSignals:
    return ListSignals(list_id=7, domain=Domain.MUSIC_ALBUMS, **overrides)


def test_static_penalties_keep_attachment_order() -> None:
    resolved = _resolver(dynamic=()).resolve(_signals(), [CRITICS_ONLY, OBSCURE])
    assert [penalty.penalty_id for penalty in resolved] == [2, 1]
    assert [penalty.value for penalty in resolved] == [pytest.approx(30.0), pytest.approx(20.0)]
    assert all(penalty.source is PenaltySource.STATIC for penalty in resolved)


def test_static_penalty_without_application_is_recorded_with_zero() -> None:
    resolved = _resolver(dynamic=()).resolve(_signals(), [UNPRICED])
    assert len(resolved) == 1
    assert resolved[0].value == pytest.approx(0.0)


def test_incompatible_and_dynamic_attachments_are_skipped() -> None:
    resolved = _resolver(dynamic=()).resolve(_signals(), [BOOKS_ONLY, VOTERS, OBSCURE])
    assert [penalty.penalty_id for penalty in resolved] == [1]


def test_voter_count_penalty_follows_power_curve_below_median() -> None:
    resolved = _resolver(dynamic=(VOTERS,)).resolve(_signals(number_of_voters=50), [])
    assert len(resolved) == 1
    penalty = resolved[0]
    assert penalty.source is PenaltySource.DYNAMIC
    assert penalty.dynamic_type is DynamicType.NUMBER_OF_VOTERS
    assert penalty.value == pytest.approx(10.0)
    assert penalty.details["median_voter_count"] == pytest.approx(100.0)


def test_voter_count_penalty_is_full_for_single_voter_and_absent_above_median() -> None:
    resolver = _resolver(dynamic=(VOTERS,))
    assert resolver.resolve(_signals(number_of_voters=1), [])[0].value == pytest.approx(40.0)
    assert resolver.resolve(_signals(number_of_voters=150), []) == []
    assert resolver.resolve(_signals(number_of_voters=None), []) == []


def test_voter_count_penalty_defaults_median_to_fifty() -> None:
    resolved = _resolver(median=None, dynamic=(VOTERS,)).resolve(_signals(number_of_voters=25), [])
    assert resolved[0].value == pytest.approx(10.0)


def test_zero_median_is_used_instead_of_the_default() -> None:
    median = compute_median_voter_count([0, 0, 5])
    assert median == 0.0

    resolver = _resolver(median=median, dynamic=(VOTERS,))
    assert resolver.resolve(_signals(number_of_voters=5), []) == []
    assert resolver.resolve(_signals(number_of_voters=1), [])[0].value == pytest.approx(40.0)


def test_boolean_dynamic_penalty_applies_full_value_only_when_flag_is_set() -> None:
    resolver = _resolver(dynamic=(NAMES_UNKNOWN,))
    resolved = resolver.resolve(_signals(voter_names_unknown=True), [])
    assert [penalty.value for penalty in resolved] == [pytest.approx(25.0)]
    assert resolver.resolve(_signals(voter_names_unknown=False), []) == []


def test_years_covered_penalty_scales_with_domain_year_range() -> None:
    resolver = _resolver(dynamic=(YEARS_COVERED,))
    resolved = resolver.resolve(_signals(num_years_covered=75), [])
    assert resolved[0].value == pytest.approx(12.5)
    assert resolved[0].details["max_year_range"] == 150
    assert resolver.resolve(_signals(num_years_covered=150), []) == []


def test_dynamic_penalties_of_other_media_are_skipped() -> None:
    resolved = _resolver(dynamic=(BOOKS_VOTERS,)).resolve(_signals(number_of_voters=1), [])
    assert resolved == []


def test_static_entries_precede_dynamic_entries() -> None:
    resolved = _resolver().resolve(
        _signals(number_of_voters=1, voter_names_unknown=True),
        [OBSCURE],
    )
    assert [penalty.penalty_id for penalty in resolved] == [1, 10, 11]


def test_median_voter_count_condenses_single_voter_lists() -> None:
    assert compute_median_voter_count([1, 1, 1, 10, 20]) == pytest.approx(10.0)
    assert compute_median_voter_count([10, None, 20]) == pytest.approx(15.0)
    assert compute_median_voter_count([None]) is None
    assert compute_median_voter_count([]) is None
