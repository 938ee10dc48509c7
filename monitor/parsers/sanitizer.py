"""
monitor/parsers/sanitizer.py

Cell sanitization for spreadsheet values.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Iterable

logger = logging.getLogger(__name__)

_MARKUP_TAG_PATTERN = re.compile(r"<[^<>]*>")
_UNSAFE_CHARS_PATTERN = re.compile(r"[<>'\"&]")
_PROTOTYPE_TOKEN_PATTERN = re.compile(r"(__proto__|constructor|prototype)", re.IGNORECASE)
_SCRIPT_SCHEME_PATTERN = re.compile(r"javascript:", re.IGNORECASE)

DISPLAY_DATE_FORMAT = "%d/%m/%Y"


def coerce_cell(value: Any) -> str:
    """
    Convert a raw cell value to text without losing integral numbers.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    # Dates render the way the sheet displays them.
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.strftime(DISPLAY_DATE_FORMAT)
        return value.strftime(f"{DISPLAY_DATE_FORMAT} %H:%M:%S")
    if isinstance(value, date):
        return value.strftime(DISPLAY_DATE_FORMAT)
    return str(value)


def sanitize_cell(value: Any) -> str:
    """
    Coerce a cell to a trimmed string with markup and script payloads removed.
    """

    text = coerce_cell(value)
    text = _MARKUP_TAG_PATTERN.sub("", text)
    text = _UNSAFE_CHARS_PATTERN.sub("", text)
    text = _PROTOTYPE_TOKEN_PATTERN.sub("", text)
    text = _SCRIPT_SCHEME_PATTERN.sub("", text)
    return text.strip()


def sanitize_row(row: Iterable[Any], *, row_index: int = 0, max_cols: int | None = None) -> list[str]:
    """
    Sanitize each cell of a row; a cell that fails becomes an empty string.
    """

    cells = list(row)
    if max_cols is not None:
        cells = cells[:max_cols]

    sanitized: list[str] = []
    for col_index, cell in enumerate(cells):
        try:
            sanitized.append(sanitize_cell(cell))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Cell sanitization failed row=%s col=%s error=%s",
                row_index,
                col_index,
                exc,
            )
            sanitized.append("")
    return sanitized
