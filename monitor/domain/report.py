"""
monitor/domain/report.py

Domain models for consumption reports and their classification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

Grid = list[list[str]]


class ReportTier(str, Enum):
    """
    Report-level severity tier.
    """

    NORMAL = "normal"
    ALERT = "alert"
    ERROR = "error"


class TrendLabel(str, Enum):
    """
    Trend labels derived from consumption when the source has none.
    """

    CRITICAL_INCREASE = "Aumento Crítico"
    INCREASE = "Aumento"
    STABLE = "Estável"
    CREDIT_OR_ERROR = "Crédito/Erro"
    NO_CONSUMPTION = "Sem Consumo"


class ServiceType(str, Enum):
    WATER = "water"
    GAS = "gas"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class UnitRecord:
    """
    One monitored unit's reading for one report.
    """

    unit_id: str
    unit_label: str
    previous_reading: float
    current_reading: float
    consumption: float
    projection_30_days: float
    trend: str
    is_high_consumption: bool
    row_index: int
    serial_number: str | None = None
    device: str | None = None
    reading_date: str | None = None
    side_fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportClassification:
    """
    Aggregate classification for one report file.
    """

    tier: ReportTier
    high_consumption_units_count: int

    @classmethod
    def default(cls) -> ReportClassification:
        return cls(tier=ReportTier.NORMAL, high_consumption_units_count=0)


@dataclass(frozen=True)
class FileRef:
    """
    Identity of one report file as listed by the remote store.
    """

    file_id: str
    display_name: str
    modified_time: str | None = None


@dataclass(frozen=True)
class PeriodFolder:
    id: str
    name: str
    last_modified: str | None
    report_count: int


@dataclass(frozen=True)
class ReportFile:
    """
    One classified report as shown in period listings.
    """

    id: str
    name: str
    date: str
    period_id: str
    status: ReportTier
    high_consumption_units_count: int
    service_type: ServiceType
    modified_time: str | None = None


@dataclass(frozen=True)
class ReportDetails:
    """
    Full per-unit view of one report.
    """

    id: str
    name: str
    units: list[UnitRecord]
    classification: ReportClassification

    @property
    def total_units(self) -> int:
        return len(self.units)

    @property
    def high_consumption_units_count(self) -> int:
        return self.classification.high_consumption_units_count

    @property
    def average_consumption(self) -> float:
        if not self.units:
            return 0.0
        return sum(unit.consumption for unit in self.units) / len(self.units)

    def top_consumers(self, limit: int = 5) -> list[UnitRecord]:
        """
        Return the units with the highest consumption, largest first.
        """

        return sorted(self.units, key=lambda unit: unit.consumption, reverse=True)[: max(0, limit)]


@dataclass(frozen=True)
class AlertsOverview:
    """
    Alerted reports from the most recent reporting date.
    """

    latest_date: str | None
    reports: list[ReportFile] = field(default_factory=list)
    by_tier: dict[ReportTier, list[ReportFile]] = field(default_factory=dict)
