"""Domain logic module - decision and scheduling engine.

Contains:
- DurationCalculator: heating curve and seasonal fallback
- BackwardScheduler: end-anchored start time inside the charging window
- DailyTrigger: once-per-day trigger state machine
- ScheduleReconciler: replaces the stored actions on the device
"""

from .duration import DurationCalculator, HeatingCurve, SeasonalFallback
from .reconciler import ScheduleReconciler
from .scheduler import BackwardScheduler
from .trigger import DailyTrigger

__all__ = [
    "BackwardScheduler",
    "DailyTrigger",
    "DurationCalculator",
    "HeatingCurve",
    "ScheduleReconciler",
    "SeasonalFallback",
]
