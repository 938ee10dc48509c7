"""
monitor/mappers/header_resolver.py

Header row discovery and label-to-field mapping for consumption reports.

Reports are human-maintained spreadsheets: the header row sits somewhere
below a title block and its labels vary in case, accents and unit suffixes
("CONSUMO (m³)", "Consumo"). The resolver finds the first row carrying the
unit description marker and maps each label to a canonical field by trying
an ordered list of predicates over the folded label. When two labels map
to the same field the later column wins.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Callable, Sequence

from monitor.domain.report import Grid
from monitor.validators.header_validator import HeaderNotFoundError, RequiredColumnValidator

logger = logging.getLogger(__name__)

HEADER_MARKERS: tuple[str, ...] = ("DESCRIÇÃO", "DESCRICAO")
HEADER_SCAN_ROWS = 20
SKIP_FIELD = "skip"

CANONICAL_FIELDS: tuple[str, ...] = (
    "unidade",
    "numeroserie",
    "dispositivo",
    "dataleitura",
    "leituraanterior",
    "leituraatual",
    "consumo",
    "projecao30dias",
    "tendencia",
)

_WHITESPACE_PATTERN = re.compile(r"\s+")


def fold_label(value: str) -> str:
    """
    Lowercase, strip diacritics and collapse whitespace.
    """

    decomposed = unicodedata.normalize("NFKD", value)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_PATTERN.sub(" ", without_marks.lower()).strip()


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda label: any(needle in label for needle in needles)


# Tried in order for every column; the first predicate that accepts the
# folded label decides the field. "lido de" must precede the reading
# columns and "leitura anterior/atual" must precede "consumo".
HEADER_MATCHERS: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("unidade", _contains_any("descri")),
    ("numeroserie", _contains_any("serie")),
    ("dispositivo", _contains_any("dispositivo")),
    ("dataleitura", _contains_any("lido de", "data leitura", "data da leitura")),
    ("leituraanterior", _contains_any("leitura anterior")),
    ("leituraatual", _contains_any("leitura atual")),
    ("consumo", _contains_any("consumo")),
    ("projecao30dias", _contains_any("projecao")),
    ("tendencia", _contains_any("tendencia")),
    (SKIP_FIELD, _contains_any("status")),
)


def match_label(label: str) -> str | None:
    """
    Return the canonical field (or `skip`) for a header label, if any.
    """

    folded = fold_label(label)
    if not folded:
        return None
    for field_name, predicate in HEADER_MATCHERS:
        if predicate(folded):
            return field_name
    return None


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field name to zero-based column index.
    """

    indices: dict[str, int] = field(default_factory=dict)

    def index_of(self, field_name: str) -> int | None:
        return self.indices.get(field_name)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.indices


@dataclass(frozen=True)
class HeaderResolution:
    """
    Where the header row is and how its columns map to fields.
    """

    header_row_index: int
    headers: tuple[str, ...]
    mapping: ColumnMapping
    # Original label to column index for unmatched and replaced columns.
    side_columns: dict[str, int] = field(default_factory=dict)
    skipped: tuple[int, ...] = ()


class HeaderResolver:
    """
    Locates the header row of a Grid and resolves its column mapping.
    """

    def __init__(
        self,
        *,
        markers: Sequence[str] = HEADER_MARKERS,
        scan_rows: int = HEADER_SCAN_ROWS,
        validator: RequiredColumnValidator | None = None,
    ) -> None:
        self._markers = tuple(markers)
        self._folded_markers = tuple(fold_label(marker) for marker in markers)
        self._scan_rows = max(1, scan_rows)
        self._validator = validator or RequiredColumnValidator()

    @property
    def markers(self) -> tuple[str, ...]:
        return self._markers

    def find_header_row(self, grid: Grid) -> int | None:
        """
        Return the index of the first row containing a marker, or None.
        """

        for row_index, row in enumerate(grid[: self._scan_rows]):
            if not row:
                continue
            row_text = fold_label(" ".join(cell for cell in row if cell))
            if any(marker in row_text for marker in self._folded_markers):
                return row_index
        return None

    def has_header(self, grid: Grid) -> bool:
        return self.find_header_row(grid) is not None

    def resolve(self, grid: Grid) -> HeaderResolution:
        """
        Resolve the header row and column mapping, validating required fields.
        """

        header_row_index = self.find_header_row(grid)
        if header_row_index is None:
            raise HeaderNotFoundError(
                markers=self._markers,
                rows_scanned=min(len(grid), self._scan_rows),
            )

        headers = tuple(grid[header_row_index])
        indices: dict[str, int] = {}
        unmapped: list[int] = []
        skipped: list[int] = []

        for column_index, label in enumerate(headers):
            field_name = match_label(label)
            if field_name == SKIP_FIELD:
                skipped.append(column_index)
                continue
            if field_name is None:
                unmapped.append(column_index)
                continue
            displaced = indices.get(field_name)
            if displaced is not None:
                # Later columns take the field; the earlier one is kept as a side column.
                logger.debug(
                    "Duplicate header replaced field=%s column=%s replaced_column=%s label=%r",
                    field_name,
                    column_index,
                    displaced,
                    label,
                )
                unmapped.append(displaced)
            indices[field_name] = column_index

        side_columns: dict[str, int] = {}
        for column_index in sorted(unmapped):
            label = headers[column_index]
            if not label or label in CANONICAL_FIELDS or label in side_columns:
                continue
            side_columns[label] = column_index

        self._validator.validate(mapping=indices, headers=headers)
        logger.debug(
            "Header resolved row=%s fields=%s side_columns=%s",
            header_row_index,
            sorted(indices),
            sorted(side_columns),
        )
        return HeaderResolution(
            header_row_index=header_row_index,
            headers=headers,
            mapping=ColumnMapping(indices=indices),
            side_columns=side_columns,
            skipped=tuple(skipped),
        )
