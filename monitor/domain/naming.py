"""
monitor/domain/naming.py

Naming conventions of the report folder tree.
"""

from __future__ import annotations

import re

from monitor.domain.report import ServiceType

PERIOD_FOLDER_PATTERN = re.compile(r"^\d{2}\s-\s[\wç\s]+ - \d{4}$", re.IGNORECASE)
DAILY_FOLDER_PATTERN = re.compile(r"^\d{2}_\d{2}_\d{4}$")
_TWO_DIGIT_PATTERN = re.compile(r"^\d{2}$")
_XLSX_SUFFIX_PATTERN = re.compile(r"\.xlsx$", re.IGNORECASE)
_SERVICE_SUFFIXES = {"água", "gas", "gás"}


def extract_report_name(filename: str) -> str:
    """
    Display name from a report file name.

    "Condominio_Alfa_água_06_06_2025.xlsx" -> "Condominio Alfa"
    """

    stem = _XLSX_SUFFIX_PATTERN.sub("", filename).strip()
    name_parts: list[str] = []
    for part in stem.split("_"):
        if part.lower() in _SERVICE_SUFFIXES or _TWO_DIGIT_PATTERN.match(part):
            break
        name_parts.append(part)
    return " ".join(name_parts).strip() or stem


def service_type_for(filename: str) -> ServiceType:
    lowered = filename.lower()
    if "_água" in lowered:
        return ServiceType.WATER
    if "_gás" in lowered:
        return ServiceType.GAS
    return ServiceType.UNKNOWN


def daily_folder_date(folder_name: str) -> str:
    return folder_name.replace("_", "/")


def is_period_folder_name(name: str) -> bool:
    return bool(PERIOD_FOLDER_PATTERN.match(name))


def is_daily_folder_name(name: str) -> bool:
    return bool(DAILY_FOLDER_PATTERN.match(name))
