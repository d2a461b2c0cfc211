"""Heater Coordinator - thin orchestrator for all components.

It:
- Builds the immutable config and the runtime state
- Drives the daily trigger from a repeating tick (or the fast test interval)
- Runs the decision cycle: fetch forecast -> decide duration -> schedule -> reconcile
- Emits events so entities refresh

The calculations themselves live in domain/*.py.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from homeassistant.core import ServiceCall, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_track_time_interval
from homeassistant.util import dt as dt_util

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

from .const import DOMAIN, SERVICE_RUN_DECISION_CYCLE
from .core.events import HeaterEvent, HeaterEventBus
from .core.state import HeaterConfig, HeaterState
from .domain.duration import DurationCalculator
from .domain.reconciler import ScheduleReconciler
from .domain.scheduler import BackwardScheduler, format_time_of_day
from .domain.trigger import DailyTrigger
from .exceptions import (
    DeviceError,
    ScheduleApplyError,
    WeatherDataError,
    WeatherError,
)
from .heater_logging import get_logger
from .infra.device import ShellyRpcClient, month_from_status
from .infra.notifier import Notifier
from .infra.weather import OpenMeteoClient
from .models import ChargeDecision


def seconds_of_day(moment: datetime) -> int:
    """Seconds elapsed since local midnight."""
    return moment.hour * 3600 + moment.minute * 60 + moment.second


class HeaterCoordinator:
    """Thin orchestrator for the Storage Heater Scheduler.

    Production mode: a tick every ``tick_interval_seconds`` feeds the daily
    trigger, plus one startup check. Test mode: the cycle runs at startup and
    then every ``test_interval_minutes`` against a dry-run reconciler.
    """

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.entry = entry
        self._listeners = []
        self._logger = get_logger()

        self.config = HeaterConfig.from_entry(
            entry,
            default_latitude=hass.config.latitude,
            default_longitude=hass.config.longitude,
            default_timezone=hass.config.time_zone,
        )
        self.state = HeaterState(config=self.config)
        self._tz = dt_util.get_time_zone(self.config.timezone) or dt_util.get_default_time_zone()

        self.events = HeaterEventBus(hass)

        session = async_get_clientsession(hass)
        self.weather = OpenMeteoClient(
            session, self.config.latitude, self.config.longitude, self.config.timezone
        )
        self.device = ShellyRpcClient(session, self.config.device_host)
        self.notifier = Notifier(hass, session, self.config)
        self.reconciler = ScheduleReconciler(self.device, self.notifier.async_send_error)
        self.trigger = DailyTrigger(self.config.data_fetch_time, self.state.trigger)

        self._logger.info(
            "COORDINATOR_INIT",
            host=self.config.device_host,
            switches=list(self.config.switch_ids),
            window=self.state.charging_window,
            fetch_time=format_time_of_day(self.config.data_fetch_time),
            test_mode=self.config.test_mode,
        )

    async def async_init(self) -> None:
        """Set up timers and services, then run the startup check."""
        if self.config.file_logging:
            self._logger.set_file_logging(True)

        self._setup_timers()
        self._register_services()

        self.hass.async_create_task(self._async_startup())

    def _setup_timers(self) -> None:
        """Set up the repeating tick (or the test interval)."""
        if self.config.test_mode:
            self._listeners.append(
                async_track_time_interval(
                    self.hass,
                    self._handle_test_interval,
                    timedelta(minutes=self.config.test_interval_minutes),
                )
            )
            self._logger.info(
                "TEST_MODE_TIMER_REGISTERED",
                interval_min=self.config.test_interval_minutes,
            )
        else:
            self._listeners.append(
                async_track_time_interval(
                    self.hass,
                    self._handle_tick,
                    timedelta(seconds=self.config.tick_interval_seconds),
                )
            )
            self._logger.debug(
                "TICK_TIMER_REGISTERED", interval_s=self.config.tick_interval_seconds
            )

    def _register_services(self) -> None:
        """Register HA services."""

        async def _handle_run(call: ServiceCall) -> None:
            await self.async_run_decision_cycle(reason="service")

        self.hass.services.async_register(DOMAIN, SERVICE_RUN_DECISION_CYCLE, _handle_run)

    @callback
    def async_unload(self) -> None:
        """Unload the coordinator."""
        for remove in self._listeners:
            remove()
        self._listeners.clear()

        self.hass.services.async_remove(DOMAIN, SERVICE_RUN_DECISION_CYCLE)

        if self._logger.file_logging_enabled:
            self._logger.set_file_logging(False)

        self._logger.info("COORDINATOR_UNLOADED")

    def local_now(self) -> datetime:
        """Current time in the configured timezone."""
        return dt_util.now(self._tz)

    # ========== Timer Handlers ==========

    async def _async_startup(self) -> None:
        """Run once after setup."""
        if self.config.test_mode:
            self._logger.info(
                "TEST_MODE_STARTED", interval_min=self.config.test_interval_minutes
            )
            await self.notifier.async_send("Test mode activated. Notifications are working.")
            await self.async_run_decision_cycle(reason="test_startup")
            return

        now = self.local_now()
        if self.trigger.startup_check(seconds_of_day(now), now.date()):
            self._logger.info("STARTUP_AFTER_FETCH_TIME", time=now.strftime("%H:%M"))
            await self.async_run_decision_cycle(reason="startup")

    async def _handle_tick(self, now: datetime) -> None:
        """Feed one tick to the daily trigger."""
        local = now.astimezone(self._tz)
        had_run = self.trigger.has_run_today

        if self.trigger.tick(seconds_of_day(local), local.date()):
            if self.state.cycle_in_progress:
                self._logger.info(
                    "DAILY_TRIGGER_ABSORBED",
                    date=local.date().isoformat(),
                    note="a manual run is already in progress",
                )
            await self.async_run_decision_cycle(reason="daily")
        elif had_run and not self.trigger.has_run_today:
            await self.events.emit(HeaterEvent.TRIGGER_RESET, date=local.date().isoformat())

    async def _handle_test_interval(self, now: datetime) -> None:
        """Fast repeating run in test mode."""
        await self.async_run_decision_cycle(reason="test_interval")

    # ========== Decision Cycle ==========

    async def async_run_decision_cycle(self, reason: str = "manual") -> None:
        """Fetch forecast, decide duration, schedule and reconcile."""
        if self.state.cycle_in_progress:
            self._logger.warning("CYCLE_ALREADY_RUNNING", reason=reason)
            await self.events.emit(HeaterEvent.CYCLE_SKIPPED, reason=reason)
            return

        self._logger.separator("DECISION CYCLE")
        self.state.cycle_in_progress = True
        await self.events.emit(HeaterEvent.CYCLE_STARTED, reason=reason)

        failure: ScheduleApplyError | None = None
        try:
            decision = await self._async_decide()
            plan = BackwardScheduler.schedule(decision.duration_seconds, self.config.window)
            if plan.duration_seconds < decision.duration_seconds:
                self._logger.info(
                    "DURATION_CAPPED_TO_WINDOW",
                    requested_s=decision.duration_seconds,
                    window_s=self.config.window.span_seconds,
                )
            try:
                result = await self.reconciler.async_apply(
                    plan, self.config.switch_ids, dry_run=self.config.test_mode
                )
            except ScheduleApplyError as err:
                failure = err
                result = err.result
        finally:
            self.state.cycle_in_progress = False

        self.state.last_decision = decision
        self.state.last_plan = plan
        self.state.last_result = result
        self.state.last_run_time = dt_util.now()

        if result.aborted:
            self.state.last_run_summary = result.error
            await self.events.emit(HeaterEvent.SCHEDULE_FAILED, error=result.error)
        else:
            self.state.last_run_summary = (
                "No charging required"
                if plan.is_noop
                else f"Start {format_time_of_day(plan.start_of_day)} for "
                f"{plan.duration_seconds / 3600:.2f} h ({decision.source.value})"
            )
            await self.events.emit(
                HeaterEvent.SCHEDULE_APPLIED,
                start=self.state.scheduled_start,
                duration_s=plan.duration_seconds,
                created=result.created,
                dry_run=result.dry_run,
            )
            await self.notifier.async_send_schedule(decision, plan, result)

        self._logger.info("CYCLE_COMPLETE", reason=reason, summary=self.state.last_run_summary)
        self._logger.debug("STATE_SNAPSHOT", **self.state.to_dict())
        await self.events.emit(HeaterEvent.CYCLE_COMPLETED, reason=reason)

        if failure is not None:
            raise failure

    async def _async_decide(self) -> ChargeDecision:
        """Size tonight's charge, falling back to the season on failure."""
        self._logger.info("FETCHING_FORECAST")
        try:
            sample = await self.weather.async_get_tomorrow()
        except WeatherError as err:
            message = (
                "Failed to parse weather data."
                if isinstance(err, WeatherDataError)
                else "Weather API unreachable."
            )
            self._logger.error("FORECAST_FAILED", reason=message, error=str(err))
            await self.events.emit(HeaterEvent.FORECAST_FAILED, error=str(err))
            await self.notifier.async_send_error(message)

            month = await self._async_current_month()
            decision = DurationCalculator.from_fallback(month, self.config.fallback)
            self._logger.info(
                "FALLBACK_DECISION", month=month, hours=round(decision.duration_hours, 2)
            )
        else:
            await self.events.emit(HeaterEvent.FORECAST_RECEIVED, samples=len(sample))
            decision = DurationCalculator.from_forecast(sample, self.config.curve)
            self._logger.info(
                "FORECAST_DECISION",
                avg_temp=round(decision.average_temperature, 2),
                hours=round(decision.duration_hours, 2),
                seconds=decision.duration_seconds,
            )

        await self.events.emit(HeaterEvent.DECISION_MADE, **decision.to_dict())
        return decision

    async def _async_current_month(self) -> int:
        """Calendar month from the device clock; January if unknown."""
        try:
            status = await self.device.async_get_status()
            return month_from_status(status, self._tz)
        except DeviceError as err:
            self._logger.warning("STATUS_QUERY_FAILED", error=str(err), assumed_month=1)
            return 1
