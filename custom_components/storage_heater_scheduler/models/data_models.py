"""Data models for Storage Heater Scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from ..const import SECONDS_PER_DAY


class DecisionSource(str, Enum):
    """Where a charge duration came from."""

    FORECAST = "forecast"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ForecastSample:
    """Hourly temperatures for tomorrow as (hour_offset, temperature) pairs."""

    points: tuple[tuple[int, float], ...]

    @property
    def temperatures(self) -> list[float]:
        """Return temperatures only."""
        return [temp for _, temp in self.points]

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class ChargeDecision:
    """Charge duration decided for one cycle."""

    duration_seconds: int
    source: DecisionSource
    average_temperature: float | None = None
    month: int | None = None

    @property
    def duration_hours(self) -> float:
        """Duration in hours."""
        return self.duration_seconds / 3600.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "duration_seconds": self.duration_seconds,
            "source": self.source.value,
            "average_temperature": self.average_temperature,
            "month": self.month,
        }


@dataclass(frozen=True)
class ChargingWindow:
    """Nightly tariff window in seconds-of-day, possibly wrapping midnight."""

    start_of_day: int
    end_of_day: int

    def __post_init__(self) -> None:
        for value in (self.start_of_day, self.end_of_day):
            if not 0 <= value < SECONDS_PER_DAY:
                raise ValueError(f"Seconds-of-day out of range: {value}")

    @property
    def wraps(self) -> bool:
        """True if the window crosses midnight."""
        return self.start_of_day > self.end_of_day

    @property
    def span_seconds(self) -> int:
        """Total time available in the window."""
        if self.wraps:
            return (SECONDS_PER_DAY - self.start_of_day) + self.end_of_day
        return self.end_of_day - self.start_of_day

    def contains(self, seconds: int) -> bool:
        """Check whether a start time lies inside the window."""
        if self.wraps:
            return seconds >= self.start_of_day or seconds < self.end_of_day
        return self.start_of_day <= seconds < self.end_of_day


@dataclass(frozen=True)
class SchedulePlan:
    """Final duration and start time produced by backward scheduling."""

    duration_seconds: int
    start_of_day: int

    @property
    def is_noop(self) -> bool:
        """True when nothing should be scheduled."""
        return self.duration_seconds == 0


@dataclass(frozen=True)
class ScheduledAction:
    """Timed switch action applied to one switch."""

    switch_id: int
    start_of_day: int
    duration_seconds: int


@dataclass
class ReconcileResult:
    """Outcome of replacing the stored actions on the device."""

    existing: list[dict[str, Any]] = field(default_factory=list)
    deleted: bool = False
    created: dict[int, bool] = field(default_factory=dict)
    error: str | None = None
    dry_run: bool = False

    @property
    def aborted(self) -> bool:
        """True if the reconciliation as a whole failed."""
        return self.error is not None

    @property
    def failed_switches(self) -> list[int]:
        """Switches whose action could not be created."""
        return [switch_id for switch_id, ok in self.created.items() if not ok]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "existing": len(self.existing),
            "deleted": self.deleted,
            "created": dict(self.created),
            "error": self.error,
            "dry_run": self.dry_run,
        }


@dataclass
class TriggerState:
    """Once-per-day trigger state."""

    has_run_today: bool = False
    last_run_date: date | None = None
