"""Read snapshots for recalculation and materialize weights/ranked items."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.orm import Session

from domain.errors import ConfigurationNotFoundError
from domain.media import Domain
from domain.rankings.common import ItemScore, ListEntry, ListSignals, PenaltyRef
from domain.rankings.parameters import RankingParameters
from domain.rankings.protocol import WeightResult
from models import (
    PARTICIPATING_STATUSES,
    List,
    ListItem,
    ListPenalty,
    Penalty,
    PenaltyApplication,
    RankedItem,
    RankedList,
    RankingConfiguration,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCK_NAMESPACE = 7_301


@dataclass(frozen=True)
class RankedListSnapshot:
    """One list of a configuration as read at the start of a recalculation."""

    ranked_list_id: int
    weight: float | None
    participating: bool
    signals: ListSignals
    attached_penalties: tuple[PenaltyRef, ...]
    entries: tuple[ListEntry, ...]


@dataclass(frozen=True)
class ConfigurationSnapshot:
    """Everything one recalculation needs, re-read fresh for every run."""

    configuration_id: int
    name: str
    domain: Domain
    parameters: RankingParameters
    applications: dict[int, int]
    dynamic_penalties: tuple[PenaltyRef, ...]
    ranked_lists: tuple[RankedListSnapshot, ...]

    @property
    def voter_counts(self) -> list[int | None]:
        return [ranked_list.signals.number_of_voters for ranked_list in self.ranked_lists]


class RankingRepository:
    """Persistence operations used by the recalculation pipeline."""

    def __init__(self, *, lock_namespace: int = DEFAULT_LOCK_NAMESPACE) -> None:
        self.lock_namespace = lock_namespace

    def lock_configuration(self, session: Session, configuration_id: int) -> None:
        """Serialize recalculations of one configuration until the transaction ends."""
        bind = session.get_bind()
        if bind is None or bind.dialect.name != "postgresql":
            return
        session.execute(
            text("SELECT pg_advisory_xact_lock(:namespace, :key)"),
            {"namespace": self.lock_namespace, "key": configuration_id},
        )

    def configuration_ids(
        self,
        session: Session,
        domain: Domain,
        *,
        include_archived: bool = False,
    ) -> list[int]:
        statement = select(RankingConfiguration.id).where(RankingConfiguration.domain == domain)
        if not include_archived:
            statement = statement.where(RankingConfiguration.archived.is_(False))
        return list(session.scalars(statement.order_by(RankingConfiguration.id)))

    def load_snapshot(self, session: Session, configuration_id: int) -> ConfigurationSnapshot:
        configuration = session.get(RankingConfiguration, configuration_id)
        if configuration is None:
            raise ConfigurationNotFoundError(configuration_id)

        applications, dynamic_penalties = self._load_applications(session, configuration_id)
        rows = session.execute(
            select(RankedList, List)
            .join(List, RankedList.list_id == List.id)
            .where(RankedList.ranking_configuration_id == configuration_id)
            .order_by(RankedList.id)
        ).all()
        list_ids = [list_.id for _, list_ in rows]
        attached = self._load_attached_penalties(session, list_ids)
        entries = self._load_entries(session, list_ids, configuration.domain)

        ranked_lists = tuple(
            RankedListSnapshot(
                ranked_list_id=ranked_list.id,
                weight=None if ranked_list.weight is None else float(ranked_list.weight),
                participating=list_.status in PARTICIPATING_STATUSES,
                signals=_list_signals(list_),
                attached_penalties=tuple(attached.get(list_.id, ())),
                entries=tuple(entries.get(list_.id, ())),
            )
            for ranked_list, list_ in rows
        )
        return ConfigurationSnapshot(
            configuration_id=configuration.id,
            name=configuration.name,
            domain=configuration.domain,
            parameters=RankingParameters.from_configuration(configuration),
            applications=applications,
            dynamic_penalties=dynamic_penalties,
            ranked_lists=ranked_lists,
        )

    def write_weights(self, session: Session, weights: Mapping[int, WeightResult]) -> None:
        """Store computed weights and breakdowns keyed by ranked_list id."""
        if not weights:
            return
        payload = [
            {
                "id": ranked_list_id,
                "weight": result.weight,
                "calculated_weight_details": result.details,
            }
            for ranked_list_id, result in sorted(weights.items())
        ]
        session.execute(update(RankedList), payload)

    def replace_ranked_items(
        self,
        session: Session,
        *,
        configuration_id: int,
        domain: Domain,
        scores: Sequence[ItemScore],
    ) -> int:
        """Delete the configuration's ranked items and insert the fresh set."""
        session.execute(delete(RankedItem).where(RankedItem.ranking_configuration_id == configuration_id))
        if not scores:
            return 0

        payload = [
            {
                "ranking_configuration_id": configuration_id,
                "item_type": domain.item_type,
                "item_id": score.item_id,
                "rank": score.rank,
                "score": score.score,
            }
            for score in scores
        ]
        session.execute(insert(RankedItem), payload)
        logger.debug(
            "Replaced ranked items configuration_id=%s item_type=%s count=%s",
            configuration_id,
            domain.item_type.value,
            len(payload),
        )
        return len(payload)

    def _load_applications(
        self,
        session: Session,
        configuration_id: int,
    ) -> tuple[dict[int, int], tuple[PenaltyRef, ...]]:
        rows = session.execute(
            select(PenaltyApplication.value, Penalty)
            .join(Penalty, PenaltyApplication.penalty_id == Penalty.id)
            .where(PenaltyApplication.ranking_configuration_id == configuration_id)
            .order_by(Penalty.id)
        ).all()
        applications = {penalty.id: int(value or 0) for value, penalty in rows}
        dynamic_penalties = tuple(penalty.to_ref() for _, penalty in rows if penalty.dynamic)
        return applications, dynamic_penalties

    def _load_attached_penalties(
        self,
        session: Session,
        list_ids: Sequence[int],
    ) -> dict[int, list[PenaltyRef]]:
        attached: dict[int, list[PenaltyRef]] = {}
        if not list_ids:
            return attached
        rows = session.execute(
            select(ListPenalty.list_id, Penalty)
            .join(Penalty, ListPenalty.penalty_id == Penalty.id)
            .where(ListPenalty.list_id.in_(list_ids))
            .order_by(ListPenalty.id)
        ).all()
        for list_id, penalty in rows:
            attached.setdefault(list_id, []).append(penalty.to_ref())
        return attached

    def _load_entries(
        self,
        session: Session,
        list_ids: Sequence[int],
        domain: Domain,
    ) -> dict[int, list[ListEntry]]:
        entries: dict[int, list[ListEntry]] = {}
        if not list_ids:
            return entries
        rows = session.execute(
            select(ListItem.list_id, ListItem.listable_id, ListItem.position)
            .where(
                ListItem.list_id.in_(list_ids),
                ListItem.verified.is_(True),
                ListItem.listable_id.is_not(None),
                ListItem.listable_type == domain.item_type,
            )
            .order_by(ListItem.list_id, ListItem.position, ListItem.id)
        ).all()
        for list_id, listable_id, position in rows:
            entries.setdefault(list_id, []).append(
                ListEntry(item_id=int(listable_id), position=int(position))
            )
        return entries


def _list_signals(list_: List) -> ListSignals:
    return ListSignals(
        list_id=list_.id,
        domain=list_.domain,
        name=list_.name,
        number_of_voters=list_.number_of_voters,
        high_quality_source=bool(list_.high_quality_source),
        voter_count_estimated=bool(list_.voter_count_estimated),
        voter_count_unknown=bool(list_.voter_count_unknown),
        voter_names_unknown=bool(list_.voter_names_unknown),
        category_specific=bool(list_.category_specific),
        location_specific=bool(list_.location_specific),
        yearly_award=bool(list_.yearly_award),
        year_published=list_.year_published,
        estimated_quality=int(list_.estimated_quality or 0),
        num_years_covered=list_.num_years_covered,
    )


__all__ = [
    "ConfigurationSnapshot",
    "DEFAULT_LOCK_NAMESPACE",
    "RankedListSnapshot",
    "RankingRepository",
]
