"""
cache/status_cache.py

Memoizes report classifications keyed by file id.

Entries expire after a fixed TTL, are dropped when the source modification
time changes, and the oldest share is evicted once the entry ceiling is
reached. The whole map is persisted under a single namespaced key of a
KeyValueStore; a payload that does not validate is discarded and the cache
starts empty.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel, Field, ValidationError

from cache.store import KeyValueStore
from monitor.domain.report import ReportClassification, ReportTier
from monitor.logging_utils import log_event

logger = logging.getLogger(__name__)

CACHE_STORE_KEY = "consumo_monitor.report_status_cache.v1"
SNAPSHOT_VERSION = 1


class CacheEntryModel(BaseModel):
    status: ReportTier
    high_consumption_units_count: int = Field(..., ge=0)
    created_at: float
    modified_time: str | None = None


class CacheSnapshot(BaseModel):
    """
    Persisted form of the whole cache.
    """

    version: int = SNAPSHOT_VERSION
    entries: dict[str, CacheEntryModel] = Field(default_factory=dict)


@dataclass(frozen=True)
class CacheEntry:
    classification: ReportClassification
    created_at: float
    modified_time: str | None = None


class StatusCache:
    """
    TTL and capacity bounded cache of ReportClassification values.

    The calling application owns the lifecycle: `open()` loads the persisted
    snapshot, `close()` flushes it. Operations on an unopened cache open it
    lazily.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_seconds: float = 6 * 60 * 60,
        max_entries: int = 1000,
        evict_fraction: float = 0.2,
        clock: Callable[[], float] = time.time,
        store_key: str = CACHE_STORE_KEY,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if not 0 < evict_fraction <= 1:
            raise ValueError("evict_fraction must be within (0, 1]")

        self._store = store
        self._ttl_seconds = float(ttl_seconds)
        self._max_entries = max_entries
        self._evict_fraction = evict_fraction
        self._clock = clock
        self._store_key = store_key
        self._entries: dict[str, CacheEntry] = {}
        self._opened = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> StatusCache:
        with self._lock:
            if not self._opened:
                self._entries = self._load()
                self._opened = True
        return self

    def close(self) -> None:
        with self._lock:
            if self._opened:
                self._persist()
                self._entries = {}
                self._opened = False

    def __enter__(self) -> StatusCache:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        with self._lock:
            self._ensure_open()
            return len(self._entries)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get(self, file_id: str, modified_time: str | None = None) -> ReportClassification | None:
        """
        Return the cached classification, or None when absent, expired or stale.
        """

        with self._lock:
            self._ensure_open()
            entry = self._entries.get(file_id)
            if entry is None:
                return None

            age = self._clock() - entry.created_at
            if age > self._ttl_seconds:
                self._evict(file_id, reason="expired")
                return None

            if modified_time and entry.modified_time and modified_time != entry.modified_time:
                self._evict(file_id, reason="stale")
                return None

            return entry.classification

    def put(
        self,
        file_id: str,
        classification: ReportClassification,
        modified_time: str | None = None,
    ) -> None:
        with self._lock:
            self._ensure_open()
            if file_id not in self._entries and len(self._entries) >= self._max_entries:
                self._evict_oldest()
            self._entries[file_id] = CacheEntry(
                classification=classification,
                created_at=self._clock(),
                modified_time=modified_time,
            )
            self._persist()

    def invalidate(self, file_id: str) -> None:
        with self._lock:
            self._ensure_open()
            if self._entries.pop(file_id, None) is not None:
                self._persist()

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries = {}
            self._opened = True
            self._store.delete(self._store_key)

    def clear(self) -> None:
        self.invalidate_all()

    def prune_expired(self) -> int:
        """
        Drop every expired entry and return how many were removed.
        """

        with self._lock:
            self._ensure_open()
            now = self._clock()
            expired = [
                file_id
                for file_id, entry in self._entries.items()
                if now - entry.created_at > self._ttl_seconds
            ]
            for file_id in expired:
                del self._entries[file_id]
            if expired:
                self._persist()
                log_event(logger, logging.INFO, "status_cache_pruned", removed=len(expired))
            return len(expired)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if not self._opened:
            self._entries = self._load()
            self._opened = True

    def _evict(self, file_id: str, *, reason: str) -> None:
        self._entries.pop(file_id, None)
        self._persist()
        logger.debug("Status cache entry evicted file_id=%s reason=%s", file_id, reason)

    def _evict_oldest(self) -> None:
        count = max(1, math.floor(len(self._entries) * self._evict_fraction))
        oldest = sorted(self._entries.items(), key=lambda item: item[1].created_at)[:count]
        for file_id, _ in oldest:
            del self._entries[file_id]
        log_event(
            logger,
            logging.INFO,
            "status_cache_capacity_eviction",
            evicted=len(oldest),
            max_entries=self._max_entries,
        )

    def _load(self) -> dict[str, CacheEntry]:
        raw_payload = self._store.get(self._store_key)
        if not raw_payload:
            return {}

        try:
            snapshot = CacheSnapshot.model_validate_json(raw_payload)
        except ValidationError as exc:
            logger.warning("Discarding corrupted status cache key=%s errors=%s", self._store_key, exc.error_count())
            self._store.delete(self._store_key)
            return {}

        if snapshot.version != SNAPSHOT_VERSION:
            logger.warning(
                "Discarding status cache with unknown version key=%s version=%s",
                self._store_key,
                snapshot.version,
            )
            self._store.delete(self._store_key)
            return {}

        return {
            file_id: CacheEntry(
                classification=ReportClassification(
                    tier=model.status,
                    high_consumption_units_count=model.high_consumption_units_count,
                ),
                created_at=model.created_at,
                modified_time=model.modified_time,
            )
            for file_id, model in snapshot.entries.items()
        }

    def _persist(self) -> None:
        snapshot = CacheSnapshot(
            entries={
                file_id: CacheEntryModel(
                    status=entry.classification.tier,
                    high_consumption_units_count=entry.classification.high_consumption_units_count,
                    created_at=entry.created_at,
                    modified_time=entry.modified_time,
                )
                for file_id, entry in self._entries.items()
            }
        )
        self._store.set(self._store_key, snapshot.model_dump_json())
