"""Resolve which penalties reduce a list's weight under one configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from domain.media import Domain, is_compatible, media_year_range
from domain.rankings.common import (
    DynamicType,
    ListSignals,
    PenaltyRef,
    PenaltySource,
    ResolvedPenalty,
)

logger = logging.getLogger(__name__)

DEFAULT_MEDIAN_VOTER_COUNT = 50.0
POWER_CURVE_EXPONENT = 2.0

_FLAG_ATTRIBUTES: dict[DynamicType, str] = {
    DynamicType.VOTER_NAMES_UNKNOWN: "voter_names_unknown",
    DynamicType.VOTER_COUNT_UNKNOWN: "voter_count_unknown",
    DynamicType.VOTER_COUNT_ESTIMATED: "voter_count_estimated",
    DynamicType.CATEGORY_SPECIFIC: "category_specific",
    DynamicType.LOCATION_SPECIFIC: "location_specific",
}


@dataclass(frozen=True)
class PenaltyContext:
    """Configuration-wide inputs shared by every list resolved in one run."""

    domain: Domain
    applications: Mapping[int, int]
    dynamic_penalties: tuple[PenaltyRef, ...] = ()
    median_voter_count: float | None = None
    reference_year: int = field(default_factory=lambda: datetime.now(UTC).year)


def compute_median_voter_count(counts: Iterable[int | None]) -> float | None:
    """Median voter count with every single-voter list condensed into one sample."""
    numbers = sorted(count for count in counts if count is not None)
    if 1 in numbers:
        numbers = sorted([number for number in numbers if number != 1] + [1])
    if not numbers:
        return None

    middle = len(numbers) // 2
    if len(numbers) % 2 == 1:
        return float(numbers[middle])
    return (numbers[middle - 1] + numbers[middle]) / 2.0


class PenaltyResolver:
    """Produces the ordered deductions for a list: attached static penalties first, then dynamic ones."""

    def __init__(self, context: PenaltyContext) -> None:
        self.context = context

    def resolve(
        self,
        signals: ListSignals,
        attached_penalties: Sequence[PenaltyRef],
    ) -> list[ResolvedPenalty]:
        resolved = self._resolve_static(signals, attached_penalties)
        resolved.extend(self._resolve_dynamic(signals))
        return resolved

    def _compatible(self, penalty: PenaltyRef, signals: ListSignals) -> bool:
        if is_compatible(penalty.media_type, signals.domain) and is_compatible(
            penalty.media_type, self.context.domain
        ):
            return True
        logger.debug(
            "Skipping penalty_id=%s (%s) for list_id=%s: media_type=%s does not match domain=%s",
            penalty.penalty_id,
            penalty.name,
            signals.list_id,
            penalty.media_type.value,
            signals.domain.value,
        )
        return False

    def _resolve_static(
        self,
        signals: ListSignals,
        attached_penalties: Sequence[PenaltyRef],
    ) -> list[ResolvedPenalty]:
        resolved: list[ResolvedPenalty] = []
        for penalty in attached_penalties:
            # Dynamic penalties are computed below, never attached; ignore stray rows.
            if penalty.dynamic or not self._compatible(penalty, signals):
                continue
            value = self.context.applications.get(penalty.penalty_id, 0)
            resolved.append(
                ResolvedPenalty(
                    penalty_id=penalty.penalty_id,
                    penalty_name=penalty.name,
                    source=PenaltySource.STATIC,
                    value=float(value),
                )
            )
        return resolved

    def _resolve_dynamic(self, signals: ListSignals) -> list[ResolvedPenalty]:
        resolved: list[ResolvedPenalty] = []
        for penalty in self.context.dynamic_penalties:
            if penalty.dynamic_type is None or not self._compatible(penalty, signals):
                continue
            max_value = float(self.context.applications.get(penalty.penalty_id, 0))
            value, details = self._dynamic_value(penalty.dynamic_type, signals, max_value)
            if value <= 0.0:
                continue
            resolved.append(
                ResolvedPenalty(
                    penalty_id=penalty.penalty_id,
                    penalty_name=penalty.name,
                    source=PenaltySource.DYNAMIC,
                    value=value,
                    dynamic_type=penalty.dynamic_type,
                    details=details,
                )
            )
        return resolved

    def _dynamic_value(
        self,
        dynamic_type: DynamicType,
        signals: ListSignals,
        max_value: float,
    ) -> tuple[float, dict[str, object]]:
        if dynamic_type is DynamicType.NUMBER_OF_VOTERS:
            return self._voter_count_value(signals, max_value)
        if dynamic_type is DynamicType.NUM_YEARS_COVERED:
            return self._years_covered_value(signals, max_value)

        attribute = _FLAG_ATTRIBUTES[dynamic_type]
        if getattr(signals, attribute):
            return max_value, {"attribute": attribute, "attribute_value": True}
        return 0.0, {}

    def _voter_count_value(
        self,
        signals: ListSignals,
        max_value: float,
    ) -> tuple[float, dict[str, object]]:
        voter_count = signals.number_of_voters
        if voter_count is None:
            return 0.0, {}

        median = self.context.median_voter_count
        if median is None:
            median = DEFAULT_MEDIAN_VOTER_COUNT
        details: dict[str, object] = {"voter_count": voter_count, "median_voter_count": median}
        if voter_count <= 1:
            return max_value, {**details, "formula": "max_value (voter_count <= 1)"}
        if voter_count > median:
            return 0.0, {}

        ratio = voter_count / median
        value = _power_curve(max_value, ratio)
        return value, {
            **details,
            "ratio": ratio,
            "exponent": POWER_CURVE_EXPONENT,
            "formula": "max_value * ((1.0 - ratio) ** exponent)",
        }

    def _years_covered_value(
        self,
        signals: ListSignals,
        max_value: float,
    ) -> tuple[float, dict[str, object]]:
        years_covered = signals.num_years_covered
        if years_covered is None:
            return 0.0, {}

        max_year_range = media_year_range(signals.domain, self.context.reference_year)
        if years_covered >= max_year_range:
            return 0.0, {}

        ratio = years_covered / max_year_range
        return _power_curve(max_value, ratio), {
            "years_covered": years_covered,
            "max_year_range": max_year_range,
            "ratio": ratio,
            "exponent": POWER_CURVE_EXPONENT,
            "formula": "max_value * ((1.0 - ratio) ** exponent)",
        }


def _power_curve(max_value: float, ratio: float) -> float:
    value = max_value * ((1.0 - ratio) ** POWER_CURVE_EXPONENT)
    return max(0.0, min(value, max_value))


__all__ = [
    "DEFAULT_MEDIAN_VOTER_COUNT",
    "PenaltyContext",
    "PenaltyResolver",
    "compute_median_voter_count",
]
