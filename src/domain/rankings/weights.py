"""List weight calculation: base weight, penalty deductions, list-dates decay, floor."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from domain.errors import ListSignalError
from domain.rankings.common import ListSignals, ResolvedPenalty
from domain.rankings.parameters import RankingParameters
from domain.rankings.protocol import WeightResult

DEFAULT_BASE_WEIGHT = 100.0
QUALITY_SOURCE_REDUCTION = 2.0 / 3.0
MAX_FUTURE_PUBLICATION_YEARS = 1


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(float(value), 100.0))


class ListWeightCalculatorV1:
    """Weight = base × Π(1 − deduction%) × (1 − dates decay%), floored at ``min_list_weight``."""

    version = 1

    def __init__(
        self,
        params: RankingParameters,
        *,
        base_weight: float = DEFAULT_BASE_WEIGHT,
        reference_time: datetime | None = None,
    ) -> None:
        self.params = params
        self.base_weight = base_weight
        reference_time = reference_time or datetime.now(UTC)
        if reference_time.tzinfo is None:
            reference_time = reference_time.replace(tzinfo=UTC)
        self.reference_time = reference_time.astimezone(UTC)

    @property
    def reference_year(self) -> int:
        return self.reference_time.year

    def calculate(
        self,
        signals: ListSignals,
        penalties: Sequence[ResolvedPenalty],
    ) -> WeightResult:
        self._validate_signals(signals)

        details: dict[str, Any] = {
            "calculation_version": self.version,
            "timestamp": self.reference_time.isoformat(),
            "base_values": {
                "base_weight": self.base_weight,
                "minimum_weight": self.params.min_list_weight,
                "high_quality_source": signals.high_quality_source,
            },
            "penalties": [],
        }

        weight = self.base_weight
        for penalty in penalties:
            applied_value = _clamp_percentage(penalty.value)
            if signals.high_quality_source:
                applied_value *= QUALITY_SOURCE_REDUCTION
            weight *= 1.0 - (applied_value / 100.0)

            entry: dict[str, Any] = {
                "penalty_id": penalty.penalty_id,
                "penalty_name": penalty.penalty_name,
                "source": penalty.source.value,
                "value": penalty.value,
                "applied_value": applied_value,
                "weight_after": weight,
            }
            if penalty.dynamic_type is not None:
                entry["dynamic_type"] = penalty.dynamic_type.value
            if penalty.details:
                entry["calculation"] = dict(penalty.details)
            details["penalties"].append(entry)

        weight_after_penalties = weight
        dates_reduction, details["list_dates_penalty"] = self._list_dates_reduction(signals)
        weight *= 1.0 - (dates_reduction / 100.0)
        weight_after_dates_penalty = weight

        final_weight = round(max(weight, float(self.params.min_list_weight)), 2)
        details["final_calculation"] = {
            "weight_after_penalties": weight_after_penalties,
            "weight_after_dates_penalty": weight_after_dates_penalty,
            "final_weight": final_weight,
        }
        return WeightResult(weight=final_weight, details=details)

    def _validate_signals(self, signals: ListSignals) -> None:
        if signals.number_of_voters is not None and signals.number_of_voters < 0:
            raise ListSignalError(signals.list_id, "number_of_voters must be >= 0")
        if signals.num_years_covered is not None and signals.num_years_covered <= 0:
            raise ListSignalError(signals.list_id, "num_years_covered must be > 0")
        if (
            signals.year_published is not None
            and signals.year_published > self.reference_year + MAX_FUTURE_PUBLICATION_YEARS
        ):
            raise ListSignalError(
                signals.list_id,
                f"year_published={signals.year_published} is in the future",
            )

    def _list_dates_reduction(self, signals: ListSignals) -> tuple[float, dict[str, Any]]:
        max_age = self.params.max_list_dates_penalty_age
        max_percentage = self.params.max_list_dates_penalty_percentage
        if (
            not self.params.apply_list_dates_penalty
            or max_age is None
            or max_percentage is None
            or signals.year_published is None
        ):
            return 0.0, {"applied": False}

        age = self.reference_year - signals.year_published
        if age <= 0:
            return 0.0, {"applied": False, "age": age}

        age_fraction = min(age / float(max_age), 1.0)
        reduction = _clamp_percentage(max_percentage * age_fraction)
        return reduction, {
            "applied": True,
            "age": age,
            "max_age": max_age,
            "max_percentage": max_percentage,
            "percentage": reduction,
        }


_CALCULATORS: dict[int, type[ListWeightCalculatorV1]] = {
    ListWeightCalculatorV1.version: ListWeightCalculatorV1,
}


def weight_calculator_for_version(version: int) -> type[ListWeightCalculatorV1]:
    """Look up the weight calculator implementing one ``algorithm_version``."""
    try:
        return _CALCULATORS[version]
    except KeyError as exc:
        raise ValueError(f"Unsupported algorithm version: {version}") from exc


__all__ = [
    "DEFAULT_BASE_WEIGHT",
    "ListWeightCalculatorV1",
    "QUALITY_SOURCE_REDUCTION",
    "weight_calculator_for_version",
]
