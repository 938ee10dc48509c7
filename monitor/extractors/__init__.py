"""
monitor/extractors package marker.
"""

from monitor.extractors.unit_extractor import UnitRecordExtractor, parse_number, parse_optional_number

__all__ = [
    "UnitRecordExtractor",
    "parse_number",
    "parse_optional_number",
]
