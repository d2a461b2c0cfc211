"""Pure charge duration logic.

Two ways of sizing tonight's charge:
- Heating curve: tomorrow's average forecast temperature -> hours
- Seasonal fallback: calendar quarter -> hours, used when no forecast is usable

No Home Assistant dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import ChargeDecision, DecisionSource, ForecastSample


@dataclass(frozen=True)
class HeatingCurve:
    """Linear heating curve constants."""

    start_temp: float
    slope: float
    max_runtime_hours: float


@dataclass(frozen=True)
class SeasonalFallback:
    """Fallback durations in hours, one per calendar quarter."""

    q1_hours: float
    q2_hours: float
    q3_hours: float
    q4_hours: float


def hours_to_seconds(hours: float) -> int:
    """Convert hours to whole seconds, rounding half up."""
    return int(hours * 3600 + 0.5)


def quarter_for_month(month: int) -> int:
    """Map a calendar month (1-12) to its quarter (1-4)."""
    return (month - 1) // 3 + 1


class DurationCalculator:
    """Pure charge duration calculations."""

    @staticmethod
    def average_temperature(sample: ForecastSample) -> float:
        """Mean temperature of a forecast sample."""
        temps = sample.temperatures
        return sum(temps) / len(temps)

    @staticmethod
    def forecast_hours(avg_temp: float, curve: HeatingCurve) -> float:
        """Charge hours required for a given average temperature.

        hours = (start_temp - avg_temp) * slope, clamped to [0, max_runtime].
        Anything at or above the start temperature needs no charge.
        """
        if avg_temp >= curve.start_temp:
            return 0.0
        hours = (curve.start_temp - avg_temp) * curve.slope
        return max(0.0, min(hours, curve.max_runtime_hours))

    @staticmethod
    def fallback_hours(month: int, fallback: SeasonalFallback) -> float:
        """Seasonal fallback hours for a calendar month."""
        quarter = quarter_for_month(month)
        if quarter == 1:
            return fallback.q1_hours
        if quarter == 2:
            return fallback.q2_hours
        if quarter == 3:
            return fallback.q3_hours
        return fallback.q4_hours

    @classmethod
    def from_forecast(
        cls, sample: ForecastSample, curve: HeatingCurve
    ) -> ChargeDecision:
        """Build a decision from tomorrow's forecast."""
        avg_temp = cls.average_temperature(sample)
        hours = cls.forecast_hours(avg_temp, curve)
        return ChargeDecision(
            duration_seconds=hours_to_seconds(hours),
            source=DecisionSource.FORECAST,
            average_temperature=avg_temp,
        )

    @classmethod
    def from_fallback(
        cls, month: int, fallback: SeasonalFallback
    ) -> ChargeDecision:
        """Build a decision from the seasonal fallback table."""
        hours = cls.fallback_hours(month, fallback)
        return ChargeDecision(
            duration_seconds=hours_to_seconds(max(0.0, hours)),
            source=DecisionSource.FALLBACK,
            month=month,
        )
