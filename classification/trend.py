"""
classification/trend.py

Per-unit trend heuristics.

The spreadsheet's own trend column is authoritative. The fallback
functions here are only used when a report has no trend column or the
unit's trend cell is empty, and are kept separate so each path can be
exercised on its own.
"""

from monitor.domain.report import TrendLabel

HIGH_CONSUMPTION_PHRASE = "alto consumo"

# Fallback breakpoints in the report's consumption unit (m³).
HIGH_CONSUMPTION_THRESHOLD = 10.0
CRITICAL_INCREASE_THRESHOLD = 20.0
INCREASE_THRESHOLD = 10.0


def is_high_consumption_trend(trend: str) -> bool:
    """Return True when a source trend label marks high consumption.

    Matches the phrase "alto consumo", or "alto" and "consumo" anywhere
    in the label, case-insensitively.

    Args:
        trend: Raw trend cell text from the report.

    Returns:
        Whether the unit is flagged as high consumption.
    """
    normalized = trend.strip().lower()
    if HIGH_CONSUMPTION_PHRASE in normalized:
        return True
    return "alto" in normalized and "consumo" in normalized


def fallback_high_consumption(consumption: float) -> bool:
    """High consumption by threshold, for units without a trend label."""
    return consumption > HIGH_CONSUMPTION_THRESHOLD


def fallback_trend_label(consumption: float) -> TrendLabel:
    """Derive a trend label from consumption magnitude.

    Args:
        consumption: Unit consumption for the reporting window.

    Returns:
        Crédito/Erro for negative values, Sem Consumo for zero, then
        Aumento Crítico above 20, Aumento above 10, otherwise Estável.
    """
    if consumption < 0:
        return TrendLabel.CREDIT_OR_ERROR
    if consumption == 0:
        return TrendLabel.NO_CONSUMPTION
    if consumption > CRITICAL_INCREASE_THRESHOLD:
        return TrendLabel.CRITICAL_INCREASE
    if consumption > INCREASE_THRESHOLD:
        return TrendLabel.INCREASE
    return TrendLabel.STABLE
