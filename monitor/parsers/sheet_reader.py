"""
monitor/parsers/sheet_reader.py

Reads a report file into a Grid, direct first and through a converted
spreadsheet copy as fallback.
"""

from __future__ import annotations

import logging
from typing import Any

from monitor.connectors.drive_connector import DriveConnector
from monitor.connectors.errors import DriveApiError, is_auth_error
from monitor.domain.report import Grid
from monitor.logging_utils import log_event
from monitor.mappers.header_resolver import HeaderResolver
from monitor.parsers.tabular_parser import TabularParseError, TabularParser

logger = logging.getLogger(__name__)


class ReportReadError(RuntimeError):
    """
    Raised when neither the direct nor the converted read produced a Grid.
    """

    def __init__(self, *, file_id: str, direct_reason: str, fallback_reason: str) -> None:
        super().__init__(
            f"Failed to read report data from file {file_id}. "
            f"Direct read: {direct_reason}. Converted read: {fallback_reason}."
        )
        self.file_id = file_id
        self.direct_reason = direct_reason
        self.fallback_reason = fallback_reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "direct_reason": self.direct_reason,
            "fallback_reason": self.fallback_reason,
        }


class SheetReader:
    """
    Produces the first sheet of a report as a sanitized Grid.
    """

    def __init__(
        self,
        connector: DriveConnector,
        *,
        parser: TabularParser | None = None,
        resolver: HeaderResolver | None = None,
    ) -> None:
        self._connector = connector
        self._parser = parser or TabularParser()
        self._resolver = resolver or HeaderResolver()

    def read_grid(self, file_id: str) -> Grid:
        grid, direct_reason = self._read_direct(file_id)
        if grid is not None:
            return grid

        log_event(logger, logging.WARNING, "sheet_read_fallback", file_id=file_id, reason=direct_reason)
        try:
            with self._connector.tabular_copy(file_id) as copy_id:
                values = self._connector.read_tabular_range(copy_id, self._connector.settings.conversion_range)
        except DriveApiError as exc:
            if is_auth_error(exc):
                raise
            logger.error("Converted read failed file_id=%s error=%s", file_id, exc)
            raise ReportReadError(
                file_id=file_id,
                direct_reason=direct_reason,
                fallback_reason=str(exc),
            ) from exc

        grid, _ = self._parser.normalize_values(values)
        logger.info("Converted read succeeded file_id=%s rows=%s", file_id, len(grid))
        return grid

    def _read_direct(self, file_id: str) -> tuple[Grid | None, str]:
        """
        Return the trusted Grid, or None with the reason it was rejected.
        """

        try:
            content = self._connector.download_bytes(file_id)
            workbook = self._parser.parse(content)
        except DriveApiError as exc:
            if is_auth_error(exc):
                raise
            logger.warning("Direct read download failed file_id=%s error=%s", file_id, exc)
            return None, str(exc)
        except TabularParseError as exc:
            logger.warning("Direct read parse failed file_id=%s error=%s", file_id, exc)
            return None, str(exc)

        grid = workbook.first_grid()
        if not self._resolver.has_header(grid):
            return None, "header marker not found in the parsed workbook"
        logger.debug("Direct read succeeded file_id=%s rows=%s", file_id, len(grid))
        return grid, ""
