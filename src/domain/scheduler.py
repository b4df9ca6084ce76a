"""Background recalculation: one worker task per configuration, repeated triggers collapse."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from domain.media import Domain
from domain.pipeline import RecalculationSummary, recalculate_configuration
from repositories.rankings import RankingRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

RecalculateFn = Callable[..., RecalculationSummary]


class RecalculationScheduler:
    """Runs recalculations on a thread pool, never two at once for the same configuration.

    Tasks carry only the configuration id; each run re-reads its inputs when it starts.
    Triggers that arrive while a run for the same id is queued or in progress are folded
    into a single follow-up run, and ``enqueue`` returns the future of that in-flight
    task so callers can wait on the most recent result.
    """

    def __init__(
        self,
        session_factory,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        repository: RankingRepository | None = None,
        recalculate: RecalculateFn = recalculate_configuration,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than 0")
        self.session_factory = session_factory
        self.repository = repository or RankingRepository()
        self._recalculate = recalculate
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="recalculate")
        self._lock = threading.Lock()
        self._inflight: dict[int, Future[RecalculationSummary]] = {}
        self._rerun: set[int] = set()

    def enqueue(self, configuration_id: int) -> Future[RecalculationSummary]:
        with self._lock:
            future = self._inflight.get(configuration_id)
            if future is not None:
                self._rerun.add(configuration_id)
                logger.debug("Collapsed recalculation trigger for configuration_id=%s", configuration_id)
                return future

            future = self._executor.submit(self._run, configuration_id)
            self._inflight[configuration_id] = future
            return future

    def enqueue_all(self, domain: Domain) -> dict[int, Future[RecalculationSummary]]:
        """Enqueue every non-archived configuration of ``domain``."""
        with self.session_factory() as session:
            configuration_ids = self.repository.configuration_ids(session, domain)
        logger.info("Enqueuing %s configurations for domain=%s", len(configuration_ids), domain.value)
        return {configuration_id: self.enqueue(configuration_id) for configuration_id in configuration_ids}

    def pending(self) -> list[int]:
        with self._lock:
            return sorted(self._inflight)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> RecalculationScheduler:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)

    def _run(self, configuration_id: int) -> RecalculationSummary:
        while True:
            try:
                summary = self._recalculate(
                    session_factory=self.session_factory,
                    configuration_id=configuration_id,
                    repository=self.repository,
                )
            except Exception:
                logger.exception("Background recalculation failed for configuration_id=%s", configuration_id)
                if self._finish(configuration_id):
                    raise
                continue

            if self._finish(configuration_id):
                return summary

    def _finish(self, configuration_id: int) -> bool:
        """Release the in-flight slot unless a follow-up run was requested meanwhile."""
        with self._lock:
            if configuration_id in self._rerun:
                self._rerun.discard(configuration_id)
                return False
            self._inflight.pop(configuration_id, None)
            return True


__all__ = ["DEFAULT_MAX_WORKERS", "RecalculationScheduler"]
