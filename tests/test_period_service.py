"""
tests/test_period_service.py

Pytest unit tests for folder-tree navigation and report listings.
"""

from __future__ import annotations

from typing import Callable

import pytest

from cache.status_cache import StatusCache
from cache.store import InMemoryStore
from monitor.config import DriveSettings
from monitor.connectors.schemas import FOLDER_MIME_TYPE, XLSX_MIME_TYPE, DriveFile
from monitor.domain.naming import (
    daily_folder_date,
    extract_report_name,
    is_daily_folder_name,
    is_period_folder_name,
    service_type_for,
)
from monitor.domain.report import FileRef, ReportClassification, ReportTier, ServiceType
from monitor.services.batch_orchestrator import BatchOrchestrator
from monitor.services.period_service import PeriodService

SETTINGS = DriveSettings(root_folder_id="root")


def _folder(folder_id: str, name: str) -> DriveFile:
    return DriveFile(id=folder_id, name=name, mime_type=FOLDER_MIME_TYPE, modified_time="2025-06-06T00:00:00Z")


def _xlsx(file_id: str, name: str) -> DriveFile:
    return DriveFile(id=file_id, name=name, mime_type=XLSX_MIME_TYPE, modified_time=f"mt-{file_id}")


TREE: dict[str, list[DriveFile]] = {
    "root": [
        _folder("p05", "05 - Maio - 2025"),
        _folder("base", "Base"),
        _folder("p06", "06 - Junho - 2025"),
        _folder("tech", "06 - servicepoints-techmetria - 2025"),
        _folder("misc", "Arquivos diversos"),
    ],
    "p06": [
        _folder("d1", "05_06_2025"),
        _folder("d2", "06_06_2025"),
        _folder("junk", "rascunhos"),
    ],
    "p05": [_folder("d3", "30_05_2025")],
    "d1": [
        _xlsx("r1", "Condominio_Beta_água_05_06_2025.xlsx"),
        _xlsx("r2", "servicepoints-techmetria_export.xlsx"),
    ],
    "d2": [
        _xlsx("r3", "condominio_Alfa_gás_06_06_2025.xlsx"),
        _xlsx("r4", "Edificio_Central_06_06_2025.xlsx"),
    ],
    "d3": [_xlsx("r5", "Residencial_Sul_água_30_05_2025.xlsx")],
}


class FakeConnector:
    settings = SETTINGS

    def __init__(self) -> None:
        self.list_calls: list[tuple[str, str | None, str | None]] = []

    def list_children(
        self,
        folder_id: str,
        filter_predicate: Callable[[DriveFile], bool] | None = None,
        *,
        mime_type: str | None = None,
        order_by: str | None = None,
    ) -> list[DriveFile]:
        self.list_calls.append((folder_id, mime_type, order_by))
        children = [child for child in TREE.get(folder_id, []) if mime_type is None or child.mime_type == mime_type]
        if filter_predicate is not None:
            children = [child for child in children if filter_predicate(child)]
        return children

    def get_metadata(self, file_id: str) -> DriveFile:
        return _folder(file_id, "Relatórios")


class FakeClassifier:
    def __init__(self, results: dict[str, ReportClassification]) -> None:
        self.results = results

    def compute_classification(self, file_ref: FileRef) -> ReportClassification:
        return self.results.get(file_ref.file_id, ReportClassification.default())


@pytest.fixture()
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture()
def service(connector: FakeConnector) -> PeriodService:
    classifier = FakeClassifier(
        {
            "r1": ReportClassification(tier=ReportTier.ERROR, high_consumption_units_count=4),
            "r3": ReportClassification(tier=ReportTier.ALERT, high_consumption_units_count=1),
        }
    )
    orchestrator = BatchOrchestrator(classifier, StatusCache(InMemoryStore()), batch_size=5)
    return PeriodService(connector=connector, orchestrator=orchestrator)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Naming conventions
# ---------------------------------------------------------------------------


class TestNaming:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("Condominio_Alfa_água_06_06_2025.xlsx", "Condominio Alfa"),
            ("Edificio_Central_06_06_2025.xlsx", "Edificio Central"),
            ("Residencial_Sul_gás_01_05_2025.XLSX", "Residencial Sul"),
            ("relatorio.xlsx", "relatorio"),
        ],
    )
    def test_extract_report_name(self, filename: str, expected: str) -> None:
        assert extract_report_name(filename) == expected

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("Condominio_Alfa_água_06_06_2025.xlsx", ServiceType.WATER),
            ("Condominio_Alfa_GÁS_06_06_2025.xlsx", ServiceType.GAS),
            ("Condominio_Alfa_06_06_2025.xlsx", ServiceType.UNKNOWN),
        ],
    )
    def test_service_type(self, filename: str, expected: ServiceType) -> None:
        assert service_type_for(filename) is expected

    def test_folder_name_patterns(self) -> None:
        assert is_period_folder_name("06 - Junho - 2025")
        assert is_period_folder_name("03 - Março - 2025")
        assert not is_period_folder_name("Junho 2025")
        assert is_daily_folder_name("06_06_2025")
        assert not is_daily_folder_name("6_6_2025")
        assert daily_folder_date("06_06_2025") == "06/06/2025"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestPeriodService:
    def test_list_periods_filters_and_counts(self, service: PeriodService, connector: FakeConnector) -> None:
        periods = service.list_periods()

        assert [period.name for period in periods] == ["06 - Junho - 2025", "05 - Maio - 2025"]
        assert [period.report_count for period in periods] == [3, 1]
        assert periods[0].last_modified == "2025-06-06T00:00:00Z"
        assert connector.list_calls[0] == ("root", FOLDER_MIME_TYPE, "name desc")

    def test_list_report_refs_uses_daily_folder_dates(self, service: PeriodService) -> None:
        refs = service.list_report_refs("p06")

        assert [(ref.file_ref.file_id, ref.date) for ref in refs] == [
            ("r1", "05/06/2025"),
            ("r3", "06/06/2025"),
            ("r4", "06/06/2025"),
        ]
        assert refs[0].file_ref.display_name == "Condominio Beta"
        assert refs[0].file_ref.modified_time == "mt-r1"

    def test_list_reports_is_classified_and_sorted(self, service: PeriodService) -> None:
        progress: list[int] = []

        reports = service.list_reports("p06", on_progress=lambda done, total: progress.append(done))

        assert [report.name for report in reports] == ["condominio Alfa", "Condominio Beta", "Edificio Central"]
        by_id = {report.id: report for report in reports}
        assert by_id["r1"].status is ReportTier.ERROR
        assert by_id["r1"].high_consumption_units_count == 4
        assert by_id["r1"].service_type is ServiceType.WATER
        assert by_id["r3"].service_type is ServiceType.GAS
        assert by_id["r4"].status is ReportTier.NORMAL
        assert by_id["r4"].service_type is ServiceType.UNKNOWN
        assert all(report.period_id == "p06" for report in reports)
        assert progress == [1, 2, 3]

    def test_empty_period(self, service: PeriodService) -> None:
        assert service.list_reports("unknown") == []

    def test_verify_access_reads_root_metadata(self, service: PeriodService) -> None:
        assert service.verify_access().id == "root"
