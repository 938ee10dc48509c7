"""
monitor/validators/header_validator.py

Validation of resolved report headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

REQUIRED_FIELDS: tuple[str, ...] = (
    "unidade",
    "leituraanterior",
    "leituraatual",
    "consumo",
)


@dataclass(frozen=True)
class HeaderErrorDetail:
    """
    Structured header error detail.
    """

    code: str
    message: str
    canonical_field: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None


class HeaderResolutionError(ValueError):
    """
    Raised when a report's header row cannot be resolved safely.
    """

    def __init__(self, *, message: str, errors: Sequence[HeaderErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "canonical_field": error.canonical_field,
                    "source_column": error.source_column,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class HeaderNotFoundError(HeaderResolutionError):
    """
    Raised when no header row is found within the scanned rows.
    """

    def __init__(self, *, markers: Sequence[str], rows_scanned: int) -> None:
        markers_csv = ", ".join(markers)
        super().__init__(
            message=(
                f"Header row not found: none of the first {rows_scanned} rows contains "
                f"any of the markers {markers_csv}."
            ),
            errors=[
                HeaderErrorDetail(
                    code="header_not_found",
                    message="No row contains the unit description marker.",
                    context={"markers": list(markers), "rows_scanned": rows_scanned},
                )
            ],
        )
        self.markers = tuple(markers)
        self.rows_scanned = rows_scanned


class MissingRequiredColumnError(HeaderResolutionError):
    """
    Raised when required canonical fields do not resolve to a column.
    """

    def __init__(
        self,
        *,
        missing: Sequence[str],
        headers: Sequence[str],
        resolved_fields: Sequence[str],
    ) -> None:
        missing_csv = ", ".join(missing)
        headers_csv = ", ".join(header for header in headers if header) or "<none>"
        super().__init__(
            message=(
                f"Missing required columns: {missing_csv}. "
                f"Columns found: {headers_csv}"
            ),
            errors=[
                HeaderErrorDetail(
                    code="required_field_unmapped",
                    message="Required canonical field is not mapped.",
                    canonical_field=field_name,
                    context={
                        "source_headers": list(headers),
                        "resolved_fields": list(resolved_fields),
                    },
                )
                for field_name in missing
            ],
        )
        self.missing = tuple(missing)
        self.headers = tuple(headers)
        self.resolved_fields = tuple(resolved_fields)


class RequiredColumnValidator:
    """
    Checks that every required canonical field maps to a column index.
    """

    def __init__(self, required_fields: Sequence[str] = REQUIRED_FIELDS) -> None:
        self._required_fields = tuple(required_fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self._required_fields

    def validate(self, *, mapping: Mapping[str, int], headers: Sequence[str]) -> None:
        missing = [field_name for field_name in self._required_fields if field_name not in mapping]
        if missing:
            raise MissingRequiredColumnError(
                missing=missing,
                headers=headers,
                resolved_fields=list(mapping.keys()),
            )
