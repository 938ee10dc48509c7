"""
monitor/parsers/tabular_parser.py

Turns raw spreadsheet bytes into sanitized string grids.

Workbooks are read with pandas (openpyxl engine). The parser enforces the
size and shape limits from ParserSettings: files above the size ceiling or
without a zip container signature are rejected, while sheets, rows and
columns beyond their caps are truncated and reported through a structured
log event rather than an error.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from typing import Any, Sequence

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from monitor.config import ParserSettings, get_parser_settings
from monitor.domain.report import Grid
from monitor.logging_utils import log_event
from monitor.parsers.sanitizer import sanitize_cell, sanitize_row

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK"


class TabularParseError(ValueError):
    """
    Raised when spreadsheet bytes cannot be turned into grids.
    """

    default_message = "Failed to process the file. Check that it is a valid xlsx spreadsheet."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class FileTooLargeError(TabularParseError):
    """
    Raised when a file exceeds the configured size ceiling.
    """

    def __init__(self, *, size_bytes: int, max_size_bytes: int) -> None:
        max_mb = max_size_bytes / (1024 * 1024)
        super().__init__(f"File is too large. Maximum allowed size: {max_mb:.0f}MB.")
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes


class UnsupportedFormatError(TabularParseError):
    default_message = "Unsupported file format. Please use a valid xlsx file."


class CorruptedFileError(TabularParseError):
    default_message = "File is corrupted or invalid."


@dataclass(frozen=True)
class ParsedWorkbook:
    """
    Sanitized grids keyed by sheet name, in workbook order.
    """

    sheets: dict[str, Grid]
    truncated_sheets: tuple[str, ...] = ()
    sheets_dropped: int = 0

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets.keys())

    @property
    def truncated(self) -> bool:
        return bool(self.truncated_sheets) or self.sheets_dropped > 0

    def first_grid(self) -> Grid:
        for grid in self.sheets.values():
            return grid
        return []


class TabularParser:
    """
    Parses xlsx bytes into sanitized grids under fixed safety limits.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self._settings = settings or get_parser_settings()

    @property
    def settings(self) -> ParserSettings:
        return self._settings

    def validate_signature(self, content: bytes) -> bool:
        """
        Return True when the bytes look like a zip-backed spreadsheet.
        """

        size = len(content)
        if size < max(4, self._settings.min_file_size_bytes):
            return False
        if size > self._settings.max_file_size_bytes:
            return False
        return content[:2] == ZIP_SIGNATURE

    def parse(self, content: bytes) -> ParsedWorkbook:
        """
        Parse workbook bytes into sanitized grids, one per sheet.
        """

        size = len(content)
        if size > self._settings.max_file_size_bytes:
            raise FileTooLargeError(size_bytes=size, max_size_bytes=self._settings.max_file_size_bytes)
        if not self.validate_signature(content):
            raise UnsupportedFormatError()

        try:
            workbook = pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
        except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError) as exc:
            logger.error("Workbook container could not be opened size=%s error=%s", size, exc)
            raise CorruptedFileError() from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("Workbook could not be opened size=%s error=%s", size, exc)
            raise TabularParseError() from exc

        with workbook:
            sheet_names = list(workbook.sheet_names)
            dropped = max(0, len(sheet_names) - self._settings.max_sheets)
            if dropped:
                log_event(
                    logger,
                    logging.WARNING,
                    "workbook_sheets_truncated",
                    sheet_count=len(sheet_names),
                    max_sheets=self._settings.max_sheets,
                )
                sheet_names = sheet_names[: self._settings.max_sheets]

            sheets: dict[str, Grid] = {}
            truncated: list[str] = []
            for sheet_name in sheet_names:
                try:
                    frame = workbook.parse(
                        sheet_name=sheet_name,
                        header=None,
                        dtype=object,
                        nrows=self._settings.max_rows + 1,
                    )
                except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
                    logger.error("Worksheet could not be read sheet=%r error=%s", sheet_name, exc)
                    raise CorruptedFileError() from exc
                except Exception as exc:  # noqa: BLE001
                    logger.error("Worksheet parsing failed sheet=%r error=%s", sheet_name, exc)
                    raise TabularParseError() from exc

                grid, was_truncated = self._frame_to_grid(frame, sheet_name=str(sheet_name))
                safe_name = sanitize_cell(sheet_name) or f"sheet_{len(sheets) + 1}"
                sheets[safe_name] = grid
                if was_truncated:
                    truncated.append(safe_name)

        return ParsedWorkbook(
            sheets=sheets,
            truncated_sheets=tuple(truncated),
            sheets_dropped=dropped,
        )

    def normalize_values(self, values: Sequence[Sequence[Any]] | None) -> tuple[Grid, bool]:
        """
        Apply row/column caps and sanitization to an already tabular payload.
        """

        rows = list(values or [])
        truncated = False
        if len(rows) > self._settings.max_rows:
            truncated = True
            rows = rows[: self._settings.max_rows]

        grid: Grid = []
        for row_index, row in enumerate(rows):
            if not isinstance(row, (list, tuple)):
                grid.append([])
                continue
            if len(row) > self._settings.max_cols:
                truncated = True
            grid.append(sanitize_row(row, row_index=row_index, max_cols=self._settings.max_cols))

        if truncated:
            log_event(
                logger,
                logging.WARNING,
                "tabular_values_truncated",
                max_rows=self._settings.max_rows,
                max_cols=self._settings.max_cols,
            )
        return grid, truncated

    def _frame_to_grid(self, frame: pd.DataFrame, *, sheet_name: str) -> tuple[Grid, bool]:
        row_count, col_count = frame.shape
        rows_truncated = row_count > self._settings.max_rows
        cols_truncated = col_count > self._settings.max_cols
        if rows_truncated:
            frame = frame.iloc[: self._settings.max_rows]
        if cols_truncated:
            frame = frame.iloc[:, : self._settings.max_cols]

        if rows_truncated or cols_truncated:
            log_event(
                logger,
                logging.WARNING,
                "worksheet_truncated",
                sheet=sheet_name,
                rows=row_count,
                cols=col_count,
                max_rows=self._settings.max_rows,
                max_cols=self._settings.max_cols,
            )

        grid: Grid = [
            sanitize_row(row, row_index=row_index)
            for row_index, row in enumerate(frame.itertuples(index=False, name=None))
        ]
        return grid, rows_truncated or cols_truncated
