"""
monitor/services/period_service.py

Walks the report folder tree: root -> period folders -> daily folders ->
spreadsheet reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from monitor.config import DriveSettings
from monitor.connectors.drive_connector import DriveConnector
from monitor.connectors.schemas import FOLDER_MIME_TYPE, XLSX_MIME_TYPE, DriveFile
from monitor.domain.naming import (
    daily_folder_date,
    extract_report_name,
    is_daily_folder_name,
    is_period_folder_name,
    service_type_for,
)
from monitor.domain.report import FileRef, PeriodFolder, ReportFile
from monitor.services.batch_orchestrator import BatchOrchestrator, ProgressCallback
from monitor.services.report_service import get_report_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodReportRef:
    """
    A report file together with the daily folder that holds it.
    """

    file_ref: FileRef
    file_name: str
    date: str


class PeriodService:
    """
    Lists periods and classified reports from the folder tree.
    """

    def __init__(self, *, connector: DriveConnector, orchestrator: BatchOrchestrator) -> None:
        self._connector = connector
        self._orchestrator = orchestrator

    @property
    def settings(self) -> DriveSettings:
        return self._connector.settings

    def verify_access(self) -> DriveFile:
        """
        Fetch the root folder metadata; raises when it is not reachable.
        """

        return self._connector.get_metadata(self.settings.root_folder_id)

    def list_periods(self) -> list[PeriodFolder]:
        folders = self._connector.list_children(
            self.settings.root_folder_id,
            self._is_period_folder,
            mime_type=FOLDER_MIME_TYPE,
            order_by="name desc",
        )
        periods = [
            PeriodFolder(
                id=folder.id,
                name=folder.name,
                last_modified=folder.modified_time,
                report_count=self.count_reports(folder.id),
            )
            for folder in folders
        ]
        periods.sort(key=lambda period: period.name, reverse=True)
        logger.info("Periods listed root=%s count=%s", self.settings.root_folder_id, len(periods))
        return periods

    def list_daily_folders(self, period_id: str) -> list[DriveFile]:
        return self._connector.list_children(
            period_id,
            lambda folder: is_daily_folder_name(folder.name),
            mime_type=FOLDER_MIME_TYPE,
        )

    def list_report_refs(self, period_id: str) -> list[PeriodReportRef]:
        refs: list[PeriodReportRef] = []
        for daily_folder in self.list_daily_folders(period_id):
            files = self._connector.list_children(
                daily_folder.id,
                self._is_report_file,
                mime_type=XLSX_MIME_TYPE,
            )
            date = daily_folder_date(daily_folder.name)
            refs.extend(
                PeriodReportRef(
                    file_ref=FileRef(
                        file_id=drive_file.id,
                        display_name=extract_report_name(drive_file.name),
                        modified_time=drive_file.modified_time,
                    ),
                    file_name=drive_file.name,
                    date=date,
                )
                for drive_file in files
            )
        return refs

    def count_reports(self, period_id: str) -> int:
        return len(self.list_report_refs(period_id))

    def list_reports(self, period_id: str, on_progress: ProgressCallback | None = None) -> list[ReportFile]:
        """
        Classify every report in a period, sorted by display name.
        """

        refs = self.list_report_refs(period_id)
        classifications = self._orchestrator.classify_many([ref.file_ref for ref in refs], on_progress)

        reports = []
        for ref in refs:
            classification = classifications[ref.file_ref.file_id]
            reports.append(
                ReportFile(
                    id=ref.file_ref.file_id,
                    name=ref.file_ref.display_name,
                    date=ref.date,
                    period_id=period_id,
                    status=classification.tier,
                    high_consumption_units_count=classification.high_consumption_units_count,
                    service_type=service_type_for(ref.file_name),
                    modified_time=ref.file_ref.modified_time,
                )
            )
        reports.sort(key=lambda report: report.name.casefold())
        logger.info("Reports listed period_id=%s count=%s", period_id, len(reports))
        return reports

    def _is_period_folder(self, folder: DriveFile) -> bool:
        if folder.name == self.settings.excluded_folder_name:
            return False
        if self._is_excluded_name(folder.name):
            return False
        return is_period_folder_name(folder.name)

    def _is_report_file(self, drive_file: DriveFile) -> bool:
        return not self._is_excluded_name(drive_file.name)

    def _is_excluded_name(self, name: str) -> bool:
        return self.settings.excluded_name_token.lower() in name.lower()


@lru_cache(maxsize=1)
def get_period_service() -> PeriodService:
    report_service = get_report_service()
    return PeriodService(
        connector=report_service.connector,
        orchestrator=BatchOrchestrator(report_service, report_service.cache),
    )
