"""
tests/test_tabular_parser.py

Pytest unit tests for TabularParser.

Workbooks are built in memory with openpyxl; no files touch the disk.
"""

from __future__ import annotations

import io
import zipfile

import pytest
from openpyxl import Workbook

from monitor.config import ParserSettings
from monitor.parsers.tabular_parser import (
    CorruptedFileError,
    FileTooLargeError,
    ParsedWorkbook,
    TabularParseError,
    TabularParser,
    UnsupportedFormatError,
)


def _xlsx_bytes(sheets: dict[str, list[list[object]]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(title=name)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def parser() -> TabularParser:
    return TabularParser(ParserSettings())


@pytest.fixture()
def small_parser() -> TabularParser:
    return TabularParser(ParserSettings(max_sheets=2, max_rows=3, max_cols=2))


# ---------------------------------------------------------------------------
# Signature and size checks
# ---------------------------------------------------------------------------


class TestSignature:
    def test_valid_workbook_passes(self, parser: TabularParser) -> None:
        content = _xlsx_bytes({"Sheet1": [["a"]]})
        assert parser.validate_signature(content) is True

    def test_too_small_fails(self, parser: TabularParser) -> None:
        assert parser.validate_signature(b"PK\x03\x04") is False

    def test_wrong_magic_fails(self, parser: TabularParser) -> None:
        assert parser.validate_signature(b"%PDF" + b"x" * 200) is False

    def test_oversized_file_raises_too_large(self) -> None:
        parser = TabularParser(ParserSettings(max_file_size_bytes=200))
        with pytest.raises(FileTooLargeError) as exc_info:
            parser.parse(b"PK" + b"\x00" * 300)
        assert exc_info.value.size_bytes == 302

    def test_non_zip_raises_unsupported_format(self, parser: TabularParser) -> None:
        with pytest.raises(UnsupportedFormatError):
            parser.parse(b"col_a,col_b\n" * 20)

    def test_zip_without_workbook_raises_corrupted(self, parser: TabularParser) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("readme.txt", "not a workbook " * 20)
        with pytest.raises(CorruptedFileError):
            parser.parse(buffer.getvalue())

    def test_truncated_zip_raises_format_error(self, parser: TabularParser) -> None:
        content = _xlsx_bytes({"Sheet1": [["a", "b"]] * 50})
        with pytest.raises(TabularParseError) as exc_info:
            parser.parse(content[: len(content) // 2])
        assert "zip" not in str(exc_info.value).lower()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_cells_become_sanitized_strings(self, parser: TabularParser) -> None:
        content = _xlsx_bytes(
            {
                "Relatorio": [
                    ["DESCRIÇÃO", "CONSUMO (m³)", None],
                    ["<b>Apto 101</b>", 12.0, 3.5],
                ]
            }
        )

        workbook = parser.parse(content)

        assert workbook.sheet_names == ["Relatorio"]
        grid = workbook.first_grid()
        assert grid[0][:2] == ["DESCRIÇÃO", "CONSUMO (m³)"]
        assert grid[1] == ["Apto 101", "12", "3.5"]
        assert workbook.truncated is False

    def test_sheets_rows_and_columns_are_capped(self, small_parser: TabularParser) -> None:
        rows = [[f"r{i}c{j}" for j in range(4)] for i in range(6)]
        content = _xlsx_bytes({"A": rows, "B": rows, "C": rows})

        workbook = small_parser.parse(content)

        assert workbook.sheet_names == ["A", "B"]
        assert workbook.sheets_dropped == 1
        assert workbook.truncated is True
        grid = workbook.sheets["A"]
        assert len(grid) == 3
        assert all(len(row) <= 2 for row in grid)
        assert grid[0] == ["r0c0", "r0c1"]

    def test_first_grid_of_empty_workbook(self) -> None:
        assert ParsedWorkbook(sheets={}).first_grid() == []


# ---------------------------------------------------------------------------
# Raw value normalization (converted-copy path)
# ---------------------------------------------------------------------------


class TestNormalizeValues:
    def test_ragged_rows_are_kept(self, parser: TabularParser) -> None:
        grid, truncated = parser.normalize_values([["a", "b"], [], ["c"]])
        assert grid == [["a", "b"], [], ["c"]]
        assert truncated is False

    def test_caps_apply(self, small_parser: TabularParser) -> None:
        grid, truncated = small_parser.normalize_values([["1", "2", "3"]] * 5)
        assert truncated is True
        assert grid == [["1", "2"]] * 3

    def test_none_payload(self, parser: TabularParser) -> None:
        assert parser.normalize_values(None) == ([], False)
