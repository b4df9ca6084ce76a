"""Recalculation pipeline: resolve penalties, weigh lists, score items, materialize."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from domain.errors import ListSignalError
from domain.media import Domain
from domain.rankings.common import ItemScore, WeightedList
from domain.rankings.penalties import PenaltyContext, PenaltyResolver, compute_median_voter_count
from domain.rankings.protocol import WeightResult
from domain.rankings.scoring import ItemScoreAggregator
from domain.rankings.weights import weight_calculator_for_version
from repositories.rankings import ConfigurationSnapshot, RankingRepository

logger = logging.getLogger(__name__)

_LOCKS_GUARD = threading.Lock()
_CONFIGURATION_LOCKS: dict[int, threading.Lock] = {}


@dataclass(frozen=True)
class RecalculationSummary:
    """Outcome for one recalculated configuration."""

    configuration_id: int
    configuration_name: str
    domain: str
    processed_lists: int
    updated_lists: int
    ranked_items: int
    errors: tuple[str, ...]
    dry_run: bool


@dataclass(frozen=True)
class BulkRecalculationResult:
    """Outcome of ``recalculate_all``: per-configuration summaries and failures."""

    domain: str
    summaries: tuple[RecalculationSummary, ...] = ()
    failures: dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


@contextmanager
def configuration_lock(configuration_id: int) -> Iterator[None]:
    """Serialize recalculations of one configuration inside this process."""
    with _LOCKS_GUARD:
        lock = _CONFIGURATION_LOCKS.setdefault(configuration_id, threading.Lock())
    with lock:
        yield


def compute_list_weights(
    snapshot: ConfigurationSnapshot,
    *,
    reference_time: datetime | None = None,
) -> tuple[dict[int, WeightResult], list[str]]:
    """Weigh every list of the snapshot, keyed by ranked_list id.

    Lists whose signals cannot be weighed are skipped and reported in the returned
    error list; they keep whatever weight they had before.
    """
    parameters = snapshot.parameters
    calculator = weight_calculator_for_version(parameters.algorithm_version)(
        parameters,
        reference_time=reference_time,
    )
    resolver = PenaltyResolver(
        PenaltyContext(
            domain=snapshot.domain,
            applications=snapshot.applications,
            dynamic_penalties=snapshot.dynamic_penalties,
            median_voter_count=compute_median_voter_count(snapshot.voter_counts),
            reference_year=calculator.reference_year,
        )
    )

    weights: dict[int, WeightResult] = {}
    errors: list[str] = []
    for ranked_list in snapshot.ranked_lists:
        signals = ranked_list.signals
        try:
            penalties = resolver.resolve(signals, ranked_list.attached_penalties)
            weights[ranked_list.ranked_list_id] = calculator.calculate(signals, penalties)
        except ListSignalError as exc:
            logger.warning(
                "Skipping list weight for configuration_id=%s ranked_list_id=%s: %s",
                snapshot.configuration_id,
                ranked_list.ranked_list_id,
                exc,
            )
            errors.append(str(exc))
    return weights, errors


def weighted_lists(
    snapshot: ConfigurationSnapshot,
    weights: dict[int, WeightResult],
) -> list[WeightedList]:
    """Participating lists with their fresh weight, or their prior one when skipped."""
    lists: list[WeightedList] = []
    for ranked_list in snapshot.ranked_lists:
        if not ranked_list.participating:
            continue
        result = weights.get(ranked_list.ranked_list_id)
        weight = result.weight if result is not None else ranked_list.weight
        lists.append(
            WeightedList(
                list_id=ranked_list.signals.list_id,
                weight=weight,
                entries=ranked_list.entries,
            )
        )
    return lists


def score_snapshot(
    snapshot: ConfigurationSnapshot,
    weights: dict[int, WeightResult],
) -> list[ItemScore]:
    aggregator = ItemScoreAggregator(snapshot.parameters)
    return aggregator.aggregate(weighted_lists(snapshot, weights))


def recalculate_configuration(
    *,
    session_factory,
    configuration_id: int,
    repository: RankingRepository | None = None,
    dry_run: bool = False,
    reference_time: datetime | None = None,
    echo: Callable[[str], None] | None = None,
) -> RecalculationSummary:
    """Recompute list weights and item rankings for one configuration in one transaction."""
    repository = repository or RankingRepository()

    with configuration_lock(configuration_id), session_factory() as session:
        try:
            repository.lock_configuration(session, configuration_id)
            snapshot = repository.load_snapshot(session, configuration_id)
            weights, errors = compute_list_weights(snapshot, reference_time=reference_time)
            scores = score_snapshot(snapshot, weights)

            if dry_run:
                session.rollback()
                summary = _summary(snapshot, weights, errors, ranked_items=len(scores), dry_run=True)
                if echo is not None:
                    echo(f"[dry-run] {_describe(summary)}")
                return summary

            repository.write_weights(session, weights)
            inserted = repository.replace_ranked_items(
                session,
                configuration_id=snapshot.configuration_id,
                domain=snapshot.domain,
                scores=scores,
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

    summary = _summary(snapshot, weights, errors, ranked_items=inserted, dry_run=False)
    logger.info("Recalculated %s", _describe(summary))
    if echo is not None:
        echo(f"completed {_describe(summary)}")
    return summary


def recalculate_all(
    *,
    session_factory,
    domain: Domain,
    repository: RankingRepository | None = None,
    dry_run: bool = False,
    reference_time: datetime | None = None,
    echo: Callable[[str], None] | None = None,
) -> BulkRecalculationResult:
    """Recalculate every non-archived configuration of ``domain``, each in its own transaction."""
    repository = repository or RankingRepository()
    with session_factory() as session:
        configuration_ids = repository.configuration_ids(session, domain)

    if echo is not None:
        echo(f"domain={domain.value} configurations={len(configuration_ids)}")

    summaries: list[RecalculationSummary] = []
    failures: dict[int, str] = {}
    for configuration_id in configuration_ids:
        try:
            summaries.append(
                recalculate_configuration(
                    session_factory=session_factory,
                    configuration_id=configuration_id,
                    repository=repository,
                    dry_run=dry_run,
                    reference_time=reference_time,
                    echo=echo,
                )
            )
        except Exception as exc:
            logger.exception("Recalculation failed for configuration_id=%s", configuration_id)
            failures[configuration_id] = str(exc)
            if echo is not None:
                echo(f"failed configuration_id={configuration_id} error={exc}")

    return BulkRecalculationResult(
        domain=domain.value,
        summaries=tuple(summaries),
        failures=failures,
    )


def _summary(
    snapshot: ConfigurationSnapshot,
    weights: dict[int, WeightResult],
    errors: list[str],
    *,
    ranked_items: int,
    dry_run: bool,
) -> RecalculationSummary:
    return RecalculationSummary(
        configuration_id=snapshot.configuration_id,
        configuration_name=snapshot.name,
        domain=snapshot.domain.value,
        processed_lists=len(snapshot.ranked_lists),
        updated_lists=len(weights),
        ranked_items=ranked_items,
        errors=tuple(errors),
        dry_run=dry_run,
    )


def _describe(summary: RecalculationSummary) -> str:
    return (
        f"configuration_id={summary.configuration_id} "
        f"name={summary.configuration_name!r} "
        f"domain={summary.domain} "
        f"processed_lists={summary.processed_lists} "
        f"updated_lists={summary.updated_lists} "
        f"ranked_items={summary.ranked_items} "
        f"errors={len(summary.errors)}"
    )


__all__ = [
    "BulkRecalculationResult",
    "RecalculationSummary",
    "compute_list_weights",
    "configuration_lock",
    "recalculate_all",
    "recalculate_configuration",
    "score_snapshot",
    "weighted_lists",
]
