"""
tests/test_sanitizer.py

Pytest unit tests for spreadsheet cell sanitization.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from monitor.parsers.sanitizer import coerce_cell, sanitize_cell, sanitize_row


# ---------------------------------------------------------------------------
# coerce_cell
# ---------------------------------------------------------------------------


class TestCoerceCell:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (float("nan"), ""),
            (12.0, "12"),
            (12.5, "12.5"),
            (7, "7"),
            (True, "TRUE"),
            (False, "FALSE"),
            (date(2025, 6, 6), "06/06/2025"),
            (datetime(2025, 6, 6), "06/06/2025"),
            (datetime(2025, 6, 6, 8, 30), "06/06/2025 08:30:00"),
        ],
    )
    def test_coercion(self, value, expected) -> None:
        assert coerce_cell(value) == expected


# ---------------------------------------------------------------------------
# sanitize_cell
# ---------------------------------------------------------------------------


class TestSanitizeCell:
    def test_script_payload_sanitizes_to_empty(self) -> None:
        assert sanitize_cell("<script>__proto__</script>") == ""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("  Apto 101  ", "Apto 101"),
            ("Tom & Jerry", "Tom  Jerry"),
            ("it's \"quoted\"", "its quoted"),
            ("a < b", "a  b"),
            ("<b>bold</b> text", "bold text"),
            ("CONSTRUCTOR call", "call"),
            ("my Prototype", "my"),
            ("JavaScript:alert(1)", "alert(1)"),
        ],
    )
    def test_forbidden_content_is_stripped(self, value: str, expected: str) -> None:
        assert sanitize_cell(value) == expected

    def test_accents_and_units_survive(self) -> None:
        assert sanitize_cell("LEITURA ANTERIOR (m³)") == "LEITURA ANTERIOR (m³)"
        assert sanitize_cell("DESCRIÇÃO") == "DESCRIÇÃO"


# ---------------------------------------------------------------------------
# sanitize_row
# ---------------------------------------------------------------------------


class _Exploding:
    def __str__(self) -> str:
        raise RuntimeError("boom")


class TestSanitizeRow:
    def test_failing_cell_becomes_empty_string(self) -> None:
        row = ["ok", _Exploding(), 3.0]
        assert sanitize_row(row) == ["ok", "", "3"]

    def test_columns_are_capped(self) -> None:
        assert sanitize_row(["a", "b", "c", "d"], max_cols=2) == ["a", "b"]

    def test_empty_row(self) -> None:
        assert sanitize_row([]) == []
