"""
monitor/extractors/unit_extractor.py

Builds UnitRecord values from the data rows below a resolved header.
"""

from __future__ import annotations

import logging
import math
import re

from classification.trend import fallback_high_consumption, fallback_trend_label, is_high_consumption_trend
from monitor.domain.report import Grid, UnitRecord
from monitor.mappers.header_resolver import HeaderResolution

logger = logging.getLogger(__name__)

_NUMERIC_PREFIX_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_optional_number(value: str | None) -> float | None:
    """
    Parse the leading numeric prefix of a cell; None when there is none.

    A single decimal comma with no dot is read as a decimal point.
    """

    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text.count(",") == 1 and "." not in text:
        text = text.replace(",", ".")

    match = _NUMERIC_PREFIX_PATTERN.match(text)
    if match is None:
        return None
    number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_number(value: str | None) -> float:
    """
    Permissive numeric parse: anything unparseable becomes 0.
    """

    number = parse_optional_number(value)
    return 0.0 if number is None else number


class UnitRecordExtractor:
    """
    Extracts one UnitRecord per non-empty row after the header row.
    """

    def extract(self, grid: Grid, resolution: HeaderResolution) -> list[UnitRecord]:
        mapping = resolution.mapping
        has_trend_column = "tendencia" in mapping

        records: list[UnitRecord] = []
        for row_index in range(resolution.header_row_index + 1, len(grid)):
            row = grid[row_index]
            if not any(cell for cell in row):
                continue

            def cell(field_name: str) -> str | None:
                index = mapping.index_of(field_name)
                if index is None or index >= len(row):
                    return None
                return row[index]

            consumption = parse_number(cell("consumo"))

            trend_cell = cell("tendencia") if has_trend_column else None
            if trend_cell:
                trend = trend_cell
                is_high = is_high_consumption_trend(trend_cell)
            else:
                trend = fallback_trend_label(consumption).value
                is_high = fallback_high_consumption(consumption)

            projection = parse_optional_number(cell("projecao30dias"))
            if projection is None:
                projection = consumption * 30

            side_fields = {
                label: row[index] if index < len(row) else ""
                for label, index in resolution.side_columns.items()
            }

            unit_cell = cell("unidade")
            records.append(
                UnitRecord(
                    unit_id=unit_cell or f"unit-{row_index}",
                    unit_label=unit_cell or f"Unidade {row_index}",
                    previous_reading=parse_number(cell("leituraanterior")),
                    current_reading=parse_number(cell("leituraatual")),
                    consumption=consumption,
                    projection_30_days=projection,
                    trend=trend,
                    is_high_consumption=is_high,
                    row_index=row_index,
                    serial_number=cell("numeroserie") or None,
                    device=cell("dispositivo") or None,
                    reading_date=cell("dataleitura") or None,
                    side_fields=side_fields,
                )
            )

        logger.debug(
            "Unit records extracted header_row=%s records=%s",
            resolution.header_row_index,
            len(records),
        )
        return records
