"""Validated write path for penalties, list attachments and configuration membership."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.errors import FieldErrors, ValidationError
from domain.media import Domain, ItemType, MediaType, compatibility_error
from domain.rankings.common import DynamicType
from models import List, ListPenalty, Penalty, PenaltyApplication, RankedList, RankingConfiguration

MIN_PENALTY_VALUE = 0
MAX_PENALTY_VALUE = 100


def create_penalty(session: Session, attrs: Mapping[str, Any]) -> Penalty:
    """Validate and persist a penalty definition."""
    values: dict[str, Any] = {"media_type": MediaType.CROSS_MEDIA, "global_": False, **attrs}
    errors = FieldErrors()

    name = values.get("name")
    if name is None or not str(name).strip():
        errors.add("name", "can't be blank")

    try:
        values["media_type"] = MediaType(values["media_type"])
    except ValueError:
        errors.add("media_type", f"is not a known media type: {values['media_type']!r}")

    dynamic_type = values.get("dynamic_type")
    if dynamic_type is not None:
        try:
            values["dynamic_type"] = DynamicType(dynamic_type)
        except ValueError:
            errors.add("dynamic_type", f"is not a known dynamic type: {dynamic_type!r}")

    if not values.get("global_") and values.get("user_id") is None:
        errors.add("user", "must be present for user-specific penalties")

    errors.raise_if_any()
    penalty = Penalty(**values)
    session.add(penalty)
    session.flush()
    return penalty


def attach_list_penalty(session: Session, list_: List, penalty: Penalty) -> ListPenalty:
    """Attach a static penalty to a list."""
    errors = FieldErrors()
    if penalty.dynamic:
        errors.add("penalty", "dynamic penalties are calculated automatically and cannot be attached")

    message = compatibility_error(penalty.media_type, list_.domain, "list")
    if message is not None:
        errors.add("penalty", message)

    duplicate = session.execute(
        select(ListPenalty.id).where(
            ListPenalty.list_id == list_.id,
            ListPenalty.penalty_id == penalty.id,
        )
    ).first()
    if duplicate is not None:
        errors.add("list", "already has this penalty")

    errors.raise_if_any()
    list_penalty = ListPenalty(list_id=list_.id, penalty_id=penalty.id)
    session.add(list_penalty)
    session.flush()
    return list_penalty


def apply_penalty(
    session: Session,
    configuration: RankingConfiguration,
    penalty: Penalty,
    value: int,
) -> PenaltyApplication:
    """Set the percentage deduction ``penalty`` causes under ``configuration``."""
    errors = FieldErrors()
    _validate_penalty_value(value, errors)

    message = compatibility_error(penalty.media_type, configuration.domain, "configuration")
    if message is not None:
        errors.add("penalty", message)

    duplicate = session.execute(
        select(PenaltyApplication.id).where(
            PenaltyApplication.penalty_id == penalty.id,
            PenaltyApplication.ranking_configuration_id == configuration.id,
        )
    ).first()
    if duplicate is not None:
        errors.add("penalty", "has already been taken for this configuration")

    errors.raise_if_any()
    application = PenaltyApplication(
        penalty_id=penalty.id,
        ranking_configuration_id=configuration.id,
        value=value,
    )
    session.add(application)
    session.flush()
    return application


def update_penalty_value(session: Session, application: PenaltyApplication, value: int) -> PenaltyApplication:
    errors = FieldErrors()
    _validate_penalty_value(value, errors)
    errors.raise_if_any()

    application.value = value
    session.flush()
    return application


def add_list_to_configuration(
    session: Session,
    configuration: RankingConfiguration,
    list_: List,
) -> RankedList:
    """Attach a list to a configuration; its weight stays null until the next recalculation."""
    errors = FieldErrors()
    if list_.domain != configuration.domain:
        errors.add(
            "list",
            f"must be a {configuration.domain.label} list, got {list_.domain.label}",
        )

    duplicate = session.execute(
        select(RankedList.id).where(
            RankedList.ranking_configuration_id == configuration.id,
            RankedList.list_id == list_.id,
        )
    ).first()
    if duplicate is not None:
        errors.add("list", "is already part of this configuration")

    errors.raise_if_any()
    ranked_list = RankedList(ranking_configuration_id=configuration.id, list_id=list_.id)
    session.add(ranked_list)
    session.flush()
    return ranked_list


def validate_ranked_item(domain: Domain, item_type: ItemType | str) -> None:
    """Reject ranked items whose type does not belong to the configuration's domain."""
    try:
        resolved = ItemType(item_type)
    except ValueError as exc:
        raise ValidationError({"item": [f"is not a known item type: {item_type!r}"]}) from exc
    if resolved is not domain.item_type:
        raise ValidationError({"item": [f"must be a {domain.item_type.value} for {domain.label}"]})


def _validate_penalty_value(value: object, errors: FieldErrors) -> None:
    if value is None:
        errors.add("value", "can't be blank")
    elif not isinstance(value, int) or isinstance(value, bool):
        errors.add("value", "must be an integer")
    elif value < MIN_PENALTY_VALUE or value > MAX_PENALTY_VALUE:
        errors.add("value", f"must be between {MIN_PENALTY_VALUE} and {MAX_PENALTY_VALUE}")


__all__ = [
    "add_list_to_configuration",
    "apply_penalty",
    "attach_list_penalty",
    "create_penalty",
    "update_penalty_value",
    "validate_ranked_item",
]
