"""Tunable parameters of a ranking configuration and their validation rules."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from domain.errors import FieldErrors

DEFAULT_ALGORITHM_VERSION = 1
DEFAULT_EXPONENT = 3.0
DEFAULT_BONUS_POOL_PERCENTAGE = 3.0
DEFAULT_MIN_LIST_WEIGHT = 1
DEFAULT_MAX_LIST_DATES_PENALTY_AGE = 50
DEFAULT_MAX_LIST_DATES_PENALTY_PERCENTAGE = 80
MAX_NAME_LENGTH = 255
# exponent and bonus_pool_percentage are stored as NUMERIC(10, 2).
DECIMAL_PLACES = 2

CONFIGURATION_DEFAULTS: dict[str, Any] = {
    "description": None,
    "algorithm_version": DEFAULT_ALGORITHM_VERSION,
    "exponent": DEFAULT_EXPONENT,
    "bonus_pool_percentage": DEFAULT_BONUS_POOL_PERCENTAGE,
    "min_list_weight": DEFAULT_MIN_LIST_WEIGHT,
    "max_list_dates_penalty_age": DEFAULT_MAX_LIST_DATES_PENALTY_AGE,
    "max_list_dates_penalty_percentage": DEFAULT_MAX_LIST_DATES_PENALTY_PERCENTAGE,
    "apply_list_dates_penalty": True,
    "inherit_penalties": True,
    "global_": True,
    "user_id": None,
    "primary": False,
    "list_limit": None,
    "inherited_from_id": None,
    "published_at": None,
    "archived": False,
}

# Scalar tunables copied when a configuration is cloned for inheritance.
INHERITABLE_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "domain",
    "algorithm_version",
    "exponent",
    "bonus_pool_percentage",
    "min_list_weight",
    "max_list_dates_penalty_age",
    "max_list_dates_penalty_percentage",
    "apply_list_dates_penalty",
    "inherit_penalties",
    "global_",
    "user_id",
    "list_limit",
    "archived",
)

CONFIGURABLE_FIELDS: frozenset[str] = frozenset(
    INHERITABLE_FIELDS + ("primary", "inherited_from_id", "published_at")
)


@dataclass(frozen=True)
class RankingParameters:
    """Numeric knobs consumed by the weight calculator and the item aggregator."""

    algorithm_version: int = DEFAULT_ALGORITHM_VERSION
    exponent: float = DEFAULT_EXPONENT
    bonus_pool_percentage: float = DEFAULT_BONUS_POOL_PERCENTAGE
    min_list_weight: int = DEFAULT_MIN_LIST_WEIGHT
    apply_list_dates_penalty: bool = True
    max_list_dates_penalty_age: int | None = DEFAULT_MAX_LIST_DATES_PENALTY_AGE
    max_list_dates_penalty_percentage: int | None = DEFAULT_MAX_LIST_DATES_PENALTY_PERCENTAGE
    list_limit: int | None = None

    @classmethod
    def from_configuration(cls, configuration: Any) -> RankingParameters:
        """Build parameters from a ``RankingConfiguration`` row (or anything shaped like one)."""
        return cls(
            algorithm_version=int(configuration.algorithm_version),
            exponent=float(configuration.exponent),
            bonus_pool_percentage=float(configuration.bonus_pool_percentage),
            min_list_weight=int(configuration.min_list_weight),
            apply_list_dates_penalty=bool(configuration.apply_list_dates_penalty),
            max_list_dates_penalty_age=_optional_int(configuration.max_list_dates_penalty_age),
            max_list_dates_penalty_percentage=_optional_int(
                configuration.max_list_dates_penalty_percentage
            ),
            list_limit=_optional_int(configuration.list_limit),
        )


def validate_configuration_fields(values: Mapping[str, Any], errors: FieldErrors) -> None:
    """Record field errors for out-of-range or missing configuration values."""
    name = values.get("name")
    if name is None or not str(name).strip():
        errors.add("name", "can't be blank")
    elif len(str(name)) > MAX_NAME_LENGTH:
        errors.add("name", f"is too long (maximum is {MAX_NAME_LENGTH} characters)")

    if values.get("domain") is None:
        errors.add("domain", "can't be blank")

    algorithm_version = values.get("algorithm_version")
    if not _is_integer(algorithm_version):
        errors.add("algorithm_version", "must be an integer")
    elif algorithm_version <= 0:
        errors.add("algorithm_version", "must be greater than 0")

    exponent = values.get("exponent")
    if not _is_number(exponent):
        errors.add("exponent", "must be a number")
    elif not 0 < round(exponent, DECIMAL_PLACES) <= 10:
        errors.add("exponent", "must be greater than 0 and less than or equal to 10")

    bonus_pool_percentage = values.get("bonus_pool_percentage")
    if not _is_number(bonus_pool_percentage):
        errors.add("bonus_pool_percentage", "must be a number")
    elif not 0 <= round(bonus_pool_percentage, DECIMAL_PLACES) <= 100:
        errors.add("bonus_pool_percentage", "must be between 0 and 100")

    if not _is_integer(values.get("min_list_weight")):
        errors.add("min_list_weight", "must be an integer")

    list_limit = values.get("list_limit")
    if list_limit is not None and (not _is_integer(list_limit) or list_limit <= 0):
        errors.add("list_limit", "must be an integer greater than 0")

    max_age = values.get("max_list_dates_penalty_age")
    if max_age is not None and (not _is_integer(max_age) or max_age <= 0):
        errors.add("max_list_dates_penalty_age", "must be an integer greater than 0")

    max_percentage = values.get("max_list_dates_penalty_percentage")
    if max_percentage is not None and (
        not _is_integer(max_percentage) or max_percentage <= 0 or max_percentage > 100
    ):
        errors.add(
            "max_list_dates_penalty_percentage",
            "must be an integer greater than 0 and less than or equal to 100",
        )

    if values.get("global_") and values.get("user_id") is not None:
        errors.add("user_id", "global configurations cannot have a user")
    if not values.get("global_") and values.get("user_id") is None:
        errors.add("user_id", "user-specific configurations must have a user")


def _is_integer(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)  # type: ignore[call-overload]


__all__ = [
    "CONFIGURABLE_FIELDS",
    "CONFIGURATION_DEFAULTS",
    "INHERITABLE_FIELDS",
    "RankingParameters",
    "validate_configuration_fields",
]
