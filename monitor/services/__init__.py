"""
monitor/services package marker.
"""

from monitor.services.alerts_service import build_alerts_overview
from monitor.services.batch_orchestrator import BatchOrchestrator, BatchRunSummary
from monitor.services.period_service import PeriodReportRef, PeriodService, get_period_service
from monitor.services.report_service import (
    EmptyReportError,
    ReportService,
    get_report_service,
    get_status_cache,
    get_token_manager,
)

__all__ = [
    "BatchOrchestrator",
    "BatchRunSummary",
    "EmptyReportError",
    "PeriodReportRef",
    "PeriodService",
    "ReportService",
    "build_alerts_overview",
    "get_period_service",
    "get_report_service",
    "get_status_cache",
    "get_token_manager",
]
