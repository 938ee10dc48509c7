"""
classification/base.py

Abstract base interface for report status classifiers.
All classifier implementations must inherit from BaseStatusClassifier.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from monitor.domain.report import ReportClassification, UnitRecord


class BaseStatusClassifier(ABC):
    """Abstract base class for report status classifiers.

    Defines the interface that every classifier must follow so the
    services and the batch orchestrator can swap strategies freely.
    """

    @abstractmethod
    def classify(self, records: Sequence[UnitRecord]) -> ReportClassification:
        """Classify one report from its unit records.

        Args:
            records: Unit records extracted from a single report, in
                     sheet order. May be empty.

        Returns:
            The aggregate ReportClassification for the report.
        """
        raise NotImplementedError("Subclasses must implement classify()")
