"""
monitor/domain package marker.
"""

from monitor.domain.report import (
    AlertsOverview,
    FileRef,
    Grid,
    PeriodFolder,
    ReportClassification,
    ReportDetails,
    ReportFile,
    ReportTier,
    ServiceType,
    TrendLabel,
    UnitRecord,
)

__all__ = [
    "AlertsOverview",
    "FileRef",
    "Grid",
    "PeriodFolder",
    "ReportClassification",
    "ReportDetails",
    "ReportFile",
    "ReportTier",
    "ServiceType",
    "TrendLabel",
    "UnitRecord",
]
