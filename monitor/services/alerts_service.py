"""
monitor/services/alerts_service.py

Alerted reports from the most recent reporting date.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from monitor.domain.report import AlertsOverview, ReportFile, ReportTier

logger = logging.getLogger(__name__)

REPORT_DATE_FORMAT = "%d/%m/%Y"
_TIER_ORDER = {ReportTier.ERROR: 0, ReportTier.ALERT: 1}


def parse_report_date(value: str) -> date | None:
    """
    Parse a DD/MM/YYYY report date; None when it does not match.
    """

    try:
        return datetime.strptime(value.strip(), REPORT_DATE_FORMAT).date()
    except ValueError:
        return None


def build_alerts_overview(reports: Iterable[ReportFile]) -> AlertsOverview:
    """
    Keep alert and error reports from the latest date, errors first then by name.
    """

    dated = [(parse_report_date(report.date), report) for report in reports]
    valid_dates = [report_date for report_date, _ in dated if report_date is not None]
    if not valid_dates:
        return AlertsOverview(latest_date=None)

    latest = max(valid_dates)
    alerted = [
        report
        for report_date, report in dated
        if report_date == latest and report.status in _TIER_ORDER
    ]
    alerted.sort(key=lambda report: (_TIER_ORDER[report.status], report.name.casefold()))

    by_tier = {
        ReportTier.ERROR: [report for report in alerted if report.status is ReportTier.ERROR],
        ReportTier.ALERT: [report for report in alerted if report.status is ReportTier.ALERT],
    }
    logger.debug(
        "Alerts overview built latest_date=%s errors=%s alerts=%s",
        latest,
        len(by_tier[ReportTier.ERROR]),
        len(by_tier[ReportTier.ALERT]),
    )
    return AlertsOverview(
        latest_date=latest.strftime(REPORT_DATE_FORMAT),
        reports=alerted,
        by_tier=by_tier,
    )
