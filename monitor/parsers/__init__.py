"""
monitor/parsers package marker.
"""

from monitor.parsers.sanitizer import sanitize_cell, sanitize_row
from monitor.parsers.sheet_reader import ReportReadError, SheetReader
from monitor.parsers.tabular_parser import (
    CorruptedFileError,
    FileTooLargeError,
    ParsedWorkbook,
    TabularParseError,
    TabularParser,
    UnsupportedFormatError,
)

__all__ = [
    "CorruptedFileError",
    "FileTooLargeError",
    "ParsedWorkbook",
    "ReportReadError",
    "SheetReader",
    "TabularParseError",
    "TabularParser",
    "UnsupportedFormatError",
    "sanitize_cell",
    "sanitize_row",
]
