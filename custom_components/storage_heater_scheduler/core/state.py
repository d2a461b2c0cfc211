"""Single Source of Truth - configuration and runtime state.

HeaterConfig is built once from the config entry and never mutated.
HeaterState holds everything that changes between ticks and cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from ..const import (
    CONF_CHARGING_WINDOW_END,
    CONF_CHARGING_WINDOW_START,
    CONF_DATA_FETCH_TIME,
    CONF_DEVICE_HOST,
    CONF_FALLBACK_HOURS_Q1,
    CONF_FALLBACK_HOURS_Q2,
    CONF_FALLBACK_HOURS_Q3,
    CONF_FALLBACK_HOURS_Q4,
    CONF_FILE_LOGGING,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_MAX_RUNTIME_HOURS,
    CONF_NOTIFY_ON_ERROR,
    CONF_NOTIFY_ON_SCHEDULE,
    CONF_NOTIFY_SERVICE,
    CONF_SLOPE,
    CONF_START_TEMP,
    CONF_SWITCH_IDS,
    CONF_TELEGRAM_BOT_TOKEN,
    CONF_TELEGRAM_CHAT_ID,
    CONF_TEST_INTERVAL_MINUTES,
    CONF_TEST_MODE,
    CONF_TICK_INTERVAL_SECONDS,
    CONF_TIMEZONE,
    DEFAULT_CHARGING_WINDOW_END,
    DEFAULT_CHARGING_WINDOW_START,
    DEFAULT_DATA_FETCH_TIME,
    DEFAULT_FALLBACK_HOURS_Q1,
    DEFAULT_FALLBACK_HOURS_Q2,
    DEFAULT_FALLBACK_HOURS_Q3,
    DEFAULT_FALLBACK_HOURS_Q4,
    DEFAULT_FILE_LOGGING,
    DEFAULT_MAX_RUNTIME_HOURS,
    DEFAULT_NOTIFY_ON_ERROR,
    DEFAULT_NOTIFY_ON_SCHEDULE,
    DEFAULT_SLOPE,
    DEFAULT_START_TEMP,
    DEFAULT_SWITCH_IDS,
    DEFAULT_TEST_INTERVAL_MINUTES,
    DEFAULT_TEST_MODE,
    DEFAULT_TICK_INTERVAL_SECONDS,
)
from ..domain.duration import HeatingCurve, SeasonalFallback
from ..domain.scheduler import format_time_of_day, parse_time_of_day
from ..models import (
    ChargeDecision,
    ChargingWindow,
    ReconcileResult,
    SchedulePlan,
    TriggerState,
)

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


def parse_switch_ids(value: str | Iterable[int]) -> tuple[int, ...]:
    """Parse switch ids ("0, 1" or [0, 1]) into an ordered unique tuple.

    Raises:
        ValueError: if an id is not a non-negative integer or none are given
    """
    if isinstance(value, str):
        items: Iterable[Any] = [part for part in value.replace(";", ",").split(",")]
    else:
        items = value

    ids: list[int] = []
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        switch_id = int(text)
        if switch_id < 0:
            raise ValueError(f"Negative switch id: {switch_id}")
        if switch_id not in ids:
            ids.append(switch_id)

    if not ids:
        raise ValueError("No switch ids given")
    return tuple(ids)


@dataclass(frozen=True)
class HeaterConfig:
    """Immutable configuration, loaded once at setup."""

    device_host: str
    switch_ids: tuple[int, ...]
    window: ChargingWindow
    data_fetch_time: int
    latitude: float
    longitude: float
    timezone: str
    curve: HeatingCurve
    fallback: SeasonalFallback
    notify_service: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    notify_on_schedule: bool = True
    notify_on_error: bool = True
    test_mode: bool = False
    test_interval_minutes: int = 5
    tick_interval_seconds: int = 60
    file_logging: bool = False

    @classmethod
    def from_entry(
        cls,
        entry: ConfigEntry,
        default_latitude: float,
        default_longitude: float,
        default_timezone: str,
    ) -> HeaterConfig:
        """Build config from a config entry (options override data)."""
        data = entry.data
        options = entry.options

        def get_config(key, default):
            return options.get(key, data.get(key, default))

        return cls(
            device_host=data.get(CONF_DEVICE_HOST, ""),
            switch_ids=parse_switch_ids(get_config(CONF_SWITCH_IDS, DEFAULT_SWITCH_IDS)),
            window=ChargingWindow(
                start_of_day=parse_time_of_day(
                    get_config(CONF_CHARGING_WINDOW_START, DEFAULT_CHARGING_WINDOW_START)
                ),
                end_of_day=parse_time_of_day(
                    get_config(CONF_CHARGING_WINDOW_END, DEFAULT_CHARGING_WINDOW_END)
                ),
            ),
            data_fetch_time=parse_time_of_day(
                get_config(CONF_DATA_FETCH_TIME, DEFAULT_DATA_FETCH_TIME)
            ),
            latitude=float(get_config(CONF_LATITUDE, default_latitude)),
            longitude=float(get_config(CONF_LONGITUDE, default_longitude)),
            timezone=get_config(CONF_TIMEZONE, "") or default_timezone,
            curve=HeatingCurve(
                start_temp=float(get_config(CONF_START_TEMP, DEFAULT_START_TEMP)),
                slope=float(get_config(CONF_SLOPE, DEFAULT_SLOPE)),
                max_runtime_hours=float(
                    get_config(CONF_MAX_RUNTIME_HOURS, DEFAULT_MAX_RUNTIME_HOURS)
                ),
            ),
            fallback=SeasonalFallback(
                q1_hours=float(get_config(CONF_FALLBACK_HOURS_Q1, DEFAULT_FALLBACK_HOURS_Q1)),
                q2_hours=float(get_config(CONF_FALLBACK_HOURS_Q2, DEFAULT_FALLBACK_HOURS_Q2)),
                q3_hours=float(get_config(CONF_FALLBACK_HOURS_Q3, DEFAULT_FALLBACK_HOURS_Q3)),
                q4_hours=float(get_config(CONF_FALLBACK_HOURS_Q4, DEFAULT_FALLBACK_HOURS_Q4)),
            ),
            notify_service=get_config(CONF_NOTIFY_SERVICE, "") or "",
            telegram_bot_token=get_config(CONF_TELEGRAM_BOT_TOKEN, "") or "",
            telegram_chat_id=str(get_config(CONF_TELEGRAM_CHAT_ID, "") or ""),
            notify_on_schedule=get_config(CONF_NOTIFY_ON_SCHEDULE, DEFAULT_NOTIFY_ON_SCHEDULE),
            notify_on_error=get_config(CONF_NOTIFY_ON_ERROR, DEFAULT_NOTIFY_ON_ERROR),
            test_mode=get_config(CONF_TEST_MODE, DEFAULT_TEST_MODE),
            test_interval_minutes=int(
                get_config(CONF_TEST_INTERVAL_MINUTES, DEFAULT_TEST_INTERVAL_MINUTES)
            ),
            tick_interval_seconds=int(
                get_config(CONF_TICK_INTERVAL_SECONDS, DEFAULT_TICK_INTERVAL_SECONDS)
            ),
            file_logging=get_config(CONF_FILE_LOGGING, DEFAULT_FILE_LOGGING),
        )


@dataclass
class HeaterState:
    """Runtime state - ALL mutable state lives here."""

    config: HeaterConfig
    trigger: TriggerState = field(default_factory=TriggerState)

    last_decision: ChargeDecision | None = None
    last_plan: SchedulePlan | None = None
    last_result: ReconcileResult | None = None
    last_run_time: datetime | None = None
    last_run_summary: str = "Not run yet"

    cycle_in_progress: bool = False

    @property
    def is_charge_scheduled(self) -> bool:
        """True if the last cycle installed (or would install) a charge."""
        if self.last_plan is None or self.last_plan.is_noop:
            return False
        if self.last_result is None or self.last_result.aborted:
            return False
        if self.last_result.dry_run:
            return True
        return any(self.last_result.created.values())

    @property
    def scheduled_start(self) -> str | None:
        """Start time of the last plan as HH:MM."""
        if self.last_plan is None or self.last_plan.is_noop:
            return None
        return format_time_of_day(self.last_plan.start_of_day)

    @property
    def charge_duration_hours(self) -> float | None:
        """Final charge duration of the last plan."""
        if self.last_plan is None:
            return None
        return round(self.last_plan.duration_seconds / 3600, 2)

    @property
    def average_temperature(self) -> float | None:
        """Tomorrow's average temperature from the last forecast decision."""
        if self.last_decision is None or self.last_decision.average_temperature is None:
            return None
        return round(self.last_decision.average_temperature, 2)

    @property
    def decision_source(self) -> str | None:
        """Where the last duration came from."""
        if self.last_decision is None:
            return None
        return self.last_decision.source.value

    @property
    def charging_window(self) -> str:
        """Window as "HH:MM - HH:MM"."""
        window = self.config.window
        return (
            f"{format_time_of_day(window.start_of_day)} - "
            f"{format_time_of_day(window.end_of_day)}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Export state as dictionary."""
        return {
            "has_run_today": self.trigger.has_run_today,
            "last_run_date": (
                self.trigger.last_run_date.isoformat() if self.trigger.last_run_date else None
            ),
            "last_decision": self.last_decision.to_dict() if self.last_decision else None,
            "scheduled_start": self.scheduled_start,
            "charge_duration_hours": self.charge_duration_hours,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "last_run_summary": self.last_run_summary,
            "charging_window": self.charging_window,
            "test_mode": self.config.test_mode,
        }
