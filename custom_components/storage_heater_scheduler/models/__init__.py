"""Data models for Storage Heater Scheduler."""

from .data_models import (
    ChargeDecision,
    ChargingWindow,
    DecisionSource,
    ForecastSample,
    ReconcileResult,
    ScheduledAction,
    SchedulePlan,
    TriggerState,
)

__all__ = [
    "ChargeDecision",
    "ChargingWindow",
    "DecisionSource",
    "ForecastSample",
    "ReconcileResult",
    "ScheduledAction",
    "SchedulePlan",
    "TriggerState",
]
