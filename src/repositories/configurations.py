"""Ranking configuration registry: validated create/update and inheritance cloning."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.errors import FieldErrors, ValidationError
from domain.media import Domain
from domain.rankings.parameters import (
    CONFIGURABLE_FIELDS,
    CONFIGURATION_DEFAULTS,
    INHERITABLE_FIELDS,
    validate_configuration_fields,
)
from domain.rankings.penalties import compute_median_voter_count
from models import List, PenaltyApplication, RankedList, RankingConfiguration

logger = logging.getLogger(__name__)

PRIMARY_TAKEN_MESSAGE = "can only have one primary configuration per type"


class ConfigurationRegistry:
    """Owns RankingConfiguration writes; every write is validated before it is flushed."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, attrs: Mapping[str, Any]) -> RankingConfiguration:
        """Validate and persist a new configuration."""
        self._reject_unknown_fields(attrs)
        values = {**CONFIGURATION_DEFAULTS, **attrs}
        values["domain"] = _coerce_domain(values.get("domain"))
        self._validate(values, configuration_id=None)

        configuration = RankingConfiguration(**values)
        self.session.add(configuration)
        self._flush(primary=bool(values.get("primary")))
        logger.info(
            "Created ranking configuration id=%s name=%r domain=%s",
            configuration.id,
            configuration.name,
            configuration.domain.value,
        )
        return configuration

    def update(self, configuration: RankingConfiguration, attrs: Mapping[str, Any]) -> RankingConfiguration:
        """Validate the merged values first so a failed update leaves the row untouched."""
        self._reject_unknown_fields(attrs)
        values = {field: getattr(configuration, field) for field in CONFIGURABLE_FIELDS}
        values.update(attrs)
        values["domain"] = _coerce_domain(values.get("domain"))
        if values["domain"] != configuration.domain:
            raise ValidationError({"domain": ["cannot be changed once created"]})
        self._validate(values, configuration_id=configuration.id)

        for field, value in values.items():
            setattr(configuration, field, value)
        self._flush(primary=bool(values.get("primary")))
        return configuration

    def save(self, configuration: RankingConfiguration) -> RankingConfiguration:
        """Persist a configuration built elsewhere, e.g. by ``clone_for_inheritance``."""
        values = {field: getattr(configuration, field) for field in CONFIGURABLE_FIELDS}
        self._validate(values, configuration_id=configuration.id)
        if configuration not in self.session:
            self.session.add(configuration)
        self._flush(primary=bool(values.get("primary")))
        return configuration

    def clone_for_inheritance(self, source: RankingConfiguration) -> RankingConfiguration:
        """Copy every scalar tunable into a new, unsaved, non-primary, unpublished configuration."""
        values = {field: getattr(source, field) for field in INHERITABLE_FIELDS}
        return RankingConfiguration(
            **values,
            inherited_from_id=source.id,
            primary=False,
            published_at=None,
        )

    def copy_penalty_applications(
        self,
        source: RankingConfiguration,
        target: RankingConfiguration,
    ) -> list[PenaltyApplication]:
        """Copy the source's penalty values onto ``target``; penalties it already has are kept."""
        if target.id is None:
            raise ValueError("target configuration must be saved before copying penalty applications")

        existing = set(
            self.session.scalars(
                select(PenaltyApplication.penalty_id).where(
                    PenaltyApplication.ranking_configuration_id == target.id
                )
            )
        )
        source_applications = self.session.scalars(
            select(PenaltyApplication)
            .where(PenaltyApplication.ranking_configuration_id == source.id)
            .order_by(PenaltyApplication.id)
        ).all()

        copied: list[PenaltyApplication] = []
        for application in source_applications:
            if application.penalty_id in existing:
                continue
            clone = PenaltyApplication(
                penalty_id=application.penalty_id,
                ranking_configuration_id=target.id,
                value=application.value,
            )
            self.session.add(clone)
            copied.append(clone)
        self.session.flush()
        return copied

    def median_voter_count(self, configuration: RankingConfiguration) -> float | None:
        """Median voter count across every list attached to the configuration."""
        counts = self.session.scalars(
            select(List.number_of_voters)
            .join(RankedList, RankedList.list_id == List.id)
            .where(RankedList.ranking_configuration_id == configuration.id)
        ).all()
        return compute_median_voter_count(counts)

    def _reject_unknown_fields(self, attrs: Mapping[str, Any]) -> None:
        unknown = sorted(set(attrs) - CONFIGURABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["is not a configurable attribute"] for field in unknown})

    def _validate(self, values: Mapping[str, Any], *, configuration_id: int | None) -> None:
        errors = FieldErrors()
        validate_configuration_fields(values, errors)

        domain = values.get("domain")
        inherited_from_id = values.get("inherited_from_id")
        if inherited_from_id is not None:
            if configuration_id is not None and inherited_from_id == configuration_id:
                errors.add("inherited_from", "cannot reference itself")
            else:
                parent = self.session.get(RankingConfiguration, inherited_from_id)
                if parent is None:
                    errors.add("inherited_from", "must exist")
                elif parent.domain != domain:
                    errors.add("inherited_from", "must be the same type")

        if values.get("primary") and domain is not None and self._other_primary_exists(
            domain, configuration_id
        ):
            errors.add("primary", PRIMARY_TAKEN_MESSAGE)

        errors.raise_if_any()

    def _flush(self, *, primary: bool) -> None:
        """Flush pending writes; a concurrent primary for the domain surfaces as a field error.

        The unique index on primary configurations is the final guard when two
        transactions pass the primary check at the same time. The session must be
        rolled back after the error, as after any failed flush.
        """
        try:
            self.session.flush()
        except IntegrityError as exc:
            if not primary:
                raise
            logger.warning("Rejected second primary configuration: %s", exc.orig)
            raise ValidationError({"primary": [PRIMARY_TAKEN_MESSAGE]}) from exc

    def _other_primary_exists(self, domain: Domain, configuration_id: int | None) -> bool:
        statement = (
            select(RankingConfiguration.id)
            .where(
                RankingConfiguration.domain == domain,
                RankingConfiguration.primary.is_(True),
            )
            .with_for_update()
        )
        if configuration_id is not None:
            statement = statement.where(RankingConfiguration.id != configuration_id)
        return self.session.execute(statement.limit(1)).first() is not None


def _coerce_domain(value: object) -> Domain | None:
    if value is None or isinstance(value, Domain):
        return value
    try:
        return Domain(str(value))
    except ValueError as exc:
        raise ValidationError({"domain": [f"is not a known domain: {value!r}"]}) from exc


__all__ = ["ConfigurationRegistry", "PRIMARY_TAKEN_MESSAGE"]
