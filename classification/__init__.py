"""
classification package marker.
"""

from classification.base import BaseStatusClassifier
from classification.status_classifier import ReportStatusClassifier, tier_for_count
from classification.trend import fallback_high_consumption, fallback_trend_label, is_high_consumption_trend

__all__ = [
    "BaseStatusClassifier",
    "ReportStatusClassifier",
    "fallback_high_consumption",
    "fallback_trend_label",
    "is_high_consumption_trend",
    "tier_for_count",
]
