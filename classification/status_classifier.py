"""
classification/status_classifier.py

Report status classifier implementing BaseStatusClassifier.
Maps the number of high-consumption units in a report to a severity tier.
"""

import logging
from typing import Sequence

from classification.base import BaseStatusClassifier
from monitor.domain.report import ReportClassification, ReportTier, UnitRecord

logger = logging.getLogger(__name__)


def tier_for_count(count: int) -> ReportTier:
    """Map a high-consumption unit count to a tier.

    Args:
        count: Number of high-consumption units, >= 0.

    Returns:
        ERROR above 2, ALERT for 1 or 2, NORMAL for 0.
    """
    if count > ReportStatusClassifier.ERROR_ABOVE:
        return ReportTier.ERROR
    if count > 0:
        return ReportTier.ALERT
    return ReportTier.NORMAL


class ReportStatusClassifier(BaseStatusClassifier):
    """Counts flagged units and derives the report tier.

    Never raises: anything unexpected in the records yields the default
    classification and a logged warning.
    """

    # Reports with more flagged units than this are errors.
    ERROR_ABOVE: int = 2

    def classify(self, records: Sequence[UnitRecord]) -> ReportClassification:
        try:
            count = sum(1 for record in records if record.is_high_consumption)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Classification fell back to default error=%s", exc)
            return ReportClassification.default()

        return ReportClassification(
            tier=tier_for_count(count),
            high_consumption_units_count=count,
        )
