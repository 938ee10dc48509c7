"""
monitor/mappers package marker.
"""

from monitor.mappers.header_resolver import (
    CANONICAL_FIELDS,
    HEADER_MARKERS,
    ColumnMapping,
    HeaderResolution,
    HeaderResolver,
    fold_label,
)

__all__ = [
    "CANONICAL_FIELDS",
    "HEADER_MARKERS",
    "ColumnMapping",
    "HeaderResolution",
    "HeaderResolver",
    "fold_label",
]
