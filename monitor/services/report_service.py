"""
monitor/services/report_service.py

Service layer for classifying single reports.

Two failure policies coexist here. List-level classification
(`classify_report`) degrades to the default classification on any
non-authentication failure so one bad spreadsheet never breaks a listing.
The detail view (`fetch_report_details`) is strict: header and format
errors propagate with their diagnostics so the source file can be fixed.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from cache.status_cache import StatusCache
from cache.store import JsonFileStore
from classification.base import BaseStatusClassifier
from classification.status_classifier import ReportStatusClassifier
from monitor.config import get_cache_settings, get_oauth_settings
from monitor.connectors.drive_connector import DriveConnector
from monitor.connectors.errors import is_auth_error
from monitor.connectors.token_manager import TokenManager
from monitor.domain.naming import extract_report_name
from monitor.domain.report import FileRef, Grid, ReportClassification, ReportDetails
from monitor.extractors.unit_extractor import UnitRecordExtractor
from monitor.mappers.header_resolver import HeaderResolver
from monitor.parsers.sheet_reader import SheetReader

logger = logging.getLogger(__name__)


class EmptyReportError(ValueError):
    """
    Raised when a report has too few rows to contain a header and data.
    """

    def __init__(self, *, file_id: str, row_count: int) -> None:
        super().__init__(
            f"The spreadsheet is empty or does not contain enough data (rows={row_count})."
        )
        self.file_id = file_id
        self.row_count = row_count


class ReportService:
    """
    Reads, resolves, extracts and classifies individual report files.
    """

    def __init__(
        self,
        *,
        connector: DriveConnector,
        cache: StatusCache,
        reader: SheetReader | None = None,
        resolver: HeaderResolver | None = None,
        extractor: UnitRecordExtractor | None = None,
        classifier: BaseStatusClassifier | None = None,
    ) -> None:
        self._connector = connector
        self._cache = cache
        self._resolver = resolver or HeaderResolver()
        self._reader = reader or SheetReader(connector, resolver=self._resolver)
        self._extractor = extractor or UnitRecordExtractor()
        self._classifier = classifier or ReportStatusClassifier()

    @property
    def connector(self) -> DriveConnector:
        return self._connector

    @property
    def cache(self) -> StatusCache:
        return self._cache

    def classify_grid(self, grid: Grid) -> ReportClassification:
        """
        Resolve headers, extract units and classify; header errors propagate.
        """

        resolution = self._resolver.resolve(grid)
        records = self._extractor.extract(grid, resolution)
        return self._classifier.classify(records)

    def compute_classification(self, file_ref: FileRef) -> ReportClassification:
        """
        Classify a file from its current content, bypassing the cache.
        """

        grid = self._reader.read_grid(file_ref.file_id)
        classification = self.classify_grid(grid)
        logger.info(
            "Report classified file_id=%s name=%r status=%s high_consumption_units=%s",
            file_ref.file_id,
            file_ref.display_name,
            classification.tier.value,
            classification.high_consumption_units_count,
        )
        return classification

    def classify_report(self, file_ref: FileRef) -> ReportClassification:
        """
        Cache-first classification that never fails for non-auth reasons.
        """

        cached = self._cached(file_ref.file_id, file_ref.modified_time)
        if cached is not None:
            return cached

        try:
            classification = self.compute_classification(file_ref)
        except Exception as exc:  # noqa: BLE001
            if is_auth_error(exc):
                raise
            logger.warning(
                "Report classification defaulted file_id=%s name=%r error=%s",
                file_ref.file_id,
                file_ref.display_name,
                exc,
            )
            return ReportClassification.default()

        self._remember(file_ref.file_id, classification, file_ref.modified_time)
        return classification

    def fetch_report_details(self, file_id: str) -> ReportDetails:
        """
        Strict per-unit view of one report; refreshes its cache entry.
        """

        metadata = self._connector.get_metadata(file_id)
        grid = self._reader.read_grid(file_id)
        if len(grid) < 2:
            raise EmptyReportError(file_id=file_id, row_count=len(grid))

        resolution = self._resolver.resolve(grid)
        records = self._extractor.extract(grid, resolution)
        classification = self._classifier.classify(records)
        self._remember(file_id, classification, metadata.modified_time)

        details = ReportDetails(
            id=file_id,
            name=extract_report_name(metadata.name),
            units=records,
            classification=classification,
        )
        logger.info(
            "Report details loaded file_id=%s units=%s high_consumption_units=%s",
            file_id,
            details.total_units,
            details.high_consumption_units_count,
        )
        return details

    # ------------------------------------------------------------------
    # Cache access; store failures are logged, never raised
    # ------------------------------------------------------------------

    def _cached(self, file_id: str, modified_time: str | None) -> ReportClassification | None:
        try:
            return self._cache.get(file_id, modified_time)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Status cache read failed file_id=%s error=%s", file_id, exc)
            return None

    def _remember(
        self,
        file_id: str,
        classification: ReportClassification,
        modified_time: str | None,
    ) -> None:
        try:
            self._cache.put(file_id, classification, modified_time)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Status cache write failed file_id=%s error=%s", file_id, exc)


@lru_cache(maxsize=1)
def get_status_cache() -> StatusCache:
    """
    Return the process-wide status cache backed by the configured JSON file.
    """

    settings = get_cache_settings()
    return StatusCache(
        JsonFileStore(settings.path),
        ttl_seconds=settings.ttl_seconds,
        max_entries=settings.max_entries,
        evict_fraction=settings.evict_fraction,
    )


@lru_cache(maxsize=1)
def get_token_manager() -> TokenManager:
    settings = get_oauth_settings()
    return TokenManager(JsonFileStore(settings.token_store_path), settings=settings)


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    return ReportService(
        connector=DriveConnector(get_token_manager()),
        cache=get_status_cache(),
    )
