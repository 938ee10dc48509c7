"""
monitor/services/batch_orchestrator.py

Cache-first classification of many report files in bounded batches.

Every file is first looked up in the StatusCache. Misses are classified in
fixed-size rounds on a thread pool; a round is fully settled before the
next one starts, so at most `batch_size` files are in flight. A failure on
one file yields the default classification for that file only, except for
authentication failures, which are raised once the round has settled.
Cache read and write failures are logged and never fail a file.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from cache.status_cache import StatusCache
from monitor.config import get_batch_settings
from monitor.connectors.errors import is_auth_error
from monitor.domain.report import FileRef, ReportClassification
from monitor.logging_utils import log_event

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class FileClassifier(Protocol):
    def compute_classification(self, file_ref: FileRef) -> ReportClassification:
        ...


@dataclass(frozen=True)
class BatchRunSummary:
    """
    Counters for one classify_many call.
    """

    requested: int
    cache_hits: int
    computed: int
    failed: int
    rounds: int


class BatchOrchestrator:
    """
    Resolves classifications for a set of files, cache first.
    """

    def __init__(
        self,
        classifier: FileClassifier,
        cache: StatusCache,
        *,
        batch_size: int | None = None,
    ) -> None:
        resolved_size = batch_size if batch_size is not None else get_batch_settings().batch_size
        if resolved_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._classifier = classifier
        self._cache = cache
        self._batch_size = resolved_size
        self.last_summary: BatchRunSummary | None = None

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def classify_many(
        self,
        files: Sequence[FileRef],
        on_progress: ProgressCallback | None = None,
    ) -> dict[str, ReportClassification]:
        """
        Return a classification for every requested file id.

        `on_progress(completed, total)` fires after each resolution, cache hit
        or computed.
        """

        total = len(files)
        results: dict[str, ReportClassification] = {}
        completed = 0
        pending: list[FileRef] = []

        for file_ref in files:
            cached = self._cached(file_ref)
            if cached is None:
                pending.append(file_ref)
                continue
            results[file_ref.file_id] = cached
            completed += 1
            _notify(on_progress, completed, total)

        cache_hits = completed
        computed = 0
        failed = 0
        rounds = 0

        for start in range(0, len(pending), self._batch_size):
            batch = pending[start : start + self._batch_size]
            rounds += 1
            auth_error: BaseException | None = None

            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                futures = {
                    executor.submit(self._classifier.compute_classification, file_ref): file_ref
                    for file_ref in batch
                }
                for future in as_completed(futures):
                    file_ref = futures[future]
                    try:
                        classification = future.result()
                    except Exception as exc:  # noqa: BLE001
                        if is_auth_error(exc) and auth_error is None:
                            auth_error = exc
                        failed += 1
                        logger.warning(
                            "Report classification failed file_id=%s name=%r error=%s",
                            file_ref.file_id,
                            file_ref.display_name,
                            exc,
                        )
                        classification = ReportClassification.default()
                    else:
                        computed += 1
                        self._remember(file_ref, classification)

                    results[file_ref.file_id] = classification
                    completed += 1
                    _notify(on_progress, completed, total)

            log_event(
                logger,
                logging.INFO,
                "batch_round_completed",
                round=rounds,
                size=len(batch),
                completed=completed,
                total=total,
            )
            if auth_error is not None:
                self.last_summary = BatchRunSummary(total, cache_hits, computed, failed, rounds)
                raise auth_error

        self.last_summary = BatchRunSummary(
            requested=total,
            cache_hits=cache_hits,
            computed=computed,
            failed=failed,
            rounds=rounds,
        )
        log_event(
            logger,
            logging.INFO,
            "batch_classification_completed",
            requested=total,
            cache_hits=cache_hits,
            computed=computed,
            failed=failed,
            rounds=rounds,
        )
        return results

    def _cached(self, file_ref: FileRef) -> ReportClassification | None:
        try:
            return self._cache.get(file_ref.file_id, file_ref.modified_time)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Status cache read failed file_id=%s error=%s", file_ref.file_id, exc)
            return None

    def _remember(self, file_ref: FileRef, classification: ReportClassification) -> None:
        # A store failure never discards a computed classification.
        try:
            self._cache.put(file_ref.file_id, classification, file_ref.modified_time)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Status cache write failed file_id=%s error=%s", file_ref.file_id, exc)


def _notify(on_progress: ProgressCallback | None, completed: int, total: int) -> None:
    if on_progress is None:
        return
    try:
        on_progress(completed, total)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Progress callback failed completed=%s total=%s error=%s", completed, total, exc)
