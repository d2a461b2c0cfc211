"""Tests for the decision cycle coordinator."""

from datetime import datetime
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.storage_heater_scheduler.const import DOMAIN
from custom_components.storage_heater_scheduler.coordinator import (
    HeaterCoordinator,
    seconds_of_day,
)
from custom_components.storage_heater_scheduler.core.events import HeaterEvent
from custom_components.storage_heater_scheduler.exceptions import (
    DeviceError,
    ScheduleApplyError,
    WeatherDataError,
    WeatherUnavailableError,
)
from custom_components.storage_heater_scheduler.models import DecisionSource

ZURICH = ZoneInfo("Europe/Zurich")
# 2024-08-15 12:00 UTC
AUGUST_STATUS = {"unixtime": 1723723200}


@pytest.fixture
def coordinator(hass: HomeAssistant, mock_config_entry, mock_weather, mock_device):
    """Coordinator with mocked collaborators, not yet initialized."""
    return HeaterCoordinator(hass, mock_config_entry)


def recorded_events(coordinator: HeaterCoordinator, *events: HeaterEvent) -> list:
    """Collect emitted events of the given types."""
    seen = []

    async def handler(event_data):
        seen.append(event_data)

    for event in events:
        coordinator.events.on(event, handler)
    return seen


def test_seconds_of_day():
    """Wall-clock seconds since midnight."""
    assert seconds_of_day(datetime(2024, 1, 15, 19, 0, 30)) == 19 * 3600 + 30


@pytest.mark.asyncio
async def test_forecast_cycle_schedules_every_switch(coordinator, mock_weather, mock_device, sample_of):
    """5 °C tomorrow -> 5 h ending at 06:00 on switches 0 and 1."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    await coordinator.async_run_decision_cycle(reason="test")

    state = coordinator.state
    assert state.decision_source == "forecast"
    assert state.average_temperature == 5.0
    assert state.scheduled_start == "01:00"
    assert state.charge_duration_hours == 5.0
    assert state.is_charge_scheduled
    assert state.last_run_summary == "Start 01:00 for 5.00 h (forecast)"
    assert state.last_run_time is not None
    assert not state.cycle_in_progress

    mock_device.async_delete_all_schedules.assert_awaited_once()
    switch_ids = [
        call.args[0].switch_id for call in mock_device.async_create_schedule.await_args_list
    ]
    assert sorted(switch_ids) == [0, 1]
    mock_device.async_get_status.assert_not_awaited()


@pytest.mark.asyncio
async def test_warm_day_clears_schedules(coordinator, mock_weather, mock_device, sample_of):
    """No charge needed: old actions are removed and nothing is created."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([18.0] * 24))

    await coordinator.async_run_decision_cycle()

    mock_device.async_delete_all_schedules.assert_awaited_once()
    mock_device.async_create_schedule.assert_not_awaited()
    assert coordinator.state.last_run_summary == "No charging required"
    assert not coordinator.state.is_charge_scheduled


@pytest.mark.asyncio
async def test_cold_day_is_capped_to_window(coordinator, mock_weather, sample_of):
    """Max runtime fills the whole 8 h window from 22:00."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([-10.0] * 24))

    await coordinator.async_run_decision_cycle()

    assert coordinator.state.scheduled_start == "22:00"
    assert coordinator.state.charge_duration_hours == 8.0


@pytest.mark.asyncio
async def test_unreachable_forecast_uses_fallback(coordinator, mock_weather, mock_device):
    """Weather failure -> seasonal fallback for the device's month."""
    mock_weather.async_get_tomorrow.side_effect = WeatherUnavailableError("down")
    mock_device.async_get_status.return_value = AUGUST_STATUS
    coordinator.notifier.async_send_error = AsyncMock(return_value=True)
    failed = recorded_events(coordinator, HeaterEvent.FORECAST_FAILED)

    await coordinator.async_run_decision_cycle()

    decision = coordinator.state.last_decision
    assert decision.source is DecisionSource.FALLBACK
    assert decision.month == 8
    assert decision.duration_seconds == 0
    coordinator.notifier.async_send_error.assert_awaited_once_with("Weather API unreachable.")
    assert len(failed) == 1


@pytest.mark.asyncio
async def test_malformed_forecast_uses_fallback(coordinator, mock_weather, mock_device):
    """Malformed data is reported differently but recovers the same way."""
    mock_weather.async_get_tomorrow.side_effect = WeatherDataError("short")
    coordinator.notifier.async_send_error = AsyncMock(return_value=True)

    await coordinator.async_run_decision_cycle()

    coordinator.notifier.async_send_error.assert_awaited_once_with(
        "Failed to parse weather data."
    )
    # January -> Q1 -> 6 h ending 06:00
    assert coordinator.state.scheduled_start == "00:00"
    assert coordinator.state.charge_duration_hours == 6.0


@pytest.mark.asyncio
async def test_status_failure_defaults_to_january(coordinator, mock_weather, mock_device):
    """Without a device clock the month is January."""
    mock_weather.async_get_tomorrow.side_effect = WeatherUnavailableError("down")
    mock_device.async_get_status.side_effect = DeviceError("Sys.GetStatus", "timeout")

    await coordinator.async_run_decision_cycle()

    assert coordinator.state.last_decision.month == 1
    assert coordinator.state.charge_duration_hours == 6.0


@pytest.mark.asyncio
async def test_null_status_defaults_to_january(coordinator, mock_weather, mock_device):
    """A device reply that is not an object still falls back to January."""
    mock_weather.async_get_tomorrow.side_effect = WeatherUnavailableError("down")
    mock_device.async_get_status.return_value = None

    await coordinator.async_run_decision_cycle()

    assert coordinator.state.last_decision.month == 1
    assert coordinator.state.charge_duration_hours == 6.0


@pytest.mark.asyncio
async def test_delete_failure_aborts_cycle(coordinator, mock_weather, mock_device, sample_of):
    """The cycle ends without creating anything and records the failure."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))
    mock_device.async_delete_all_schedules.side_effect = DeviceError(
        "Schedule.DeleteAll", "timeout"
    )
    failed = recorded_events(coordinator, HeaterEvent.SCHEDULE_FAILED)

    await coordinator.async_run_decision_cycle()

    mock_device.async_create_schedule.assert_not_awaited()
    assert coordinator.state.last_run_summary.startswith("Failed to delete existing schedules")
    assert not coordinator.state.is_charge_scheduled
    assert len(failed) == 1


@pytest.mark.asyncio
async def test_cycle_skipped_while_running(coordinator, mock_weather):
    """A second run is refused while one is in progress."""
    coordinator.state.cycle_in_progress = True
    skipped = recorded_events(coordinator, HeaterEvent.CYCLE_SKIPPED)

    await coordinator.async_run_decision_cycle(reason="button")

    mock_weather.async_get_tomorrow.assert_not_awaited()
    assert skipped[0].data == {"reason": "button"}


@pytest.mark.asyncio
async def test_tick_runs_once_at_fetch_time(coordinator, mock_weather, sample_of):
    """Ticks at 19:00 local time fire a single cycle."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    await coordinator._handle_tick(datetime(2024, 1, 15, 18, 59, tzinfo=ZURICH))
    await coordinator._handle_tick(datetime(2024, 1, 15, 19, 0, 5, tzinfo=ZURICH))
    await coordinator._handle_tick(datetime(2024, 1, 15, 19, 0, 50, tzinfo=ZURICH))

    assert mock_weather.async_get_tomorrow.await_count == 1
    assert coordinator.state.trigger.has_run_today


@pytest.mark.asyncio
async def test_tick_uses_configured_timezone(coordinator, mock_weather, sample_of):
    """UTC ticks are converted before comparing with the fetch time."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    # 18:00 UTC is 19:00 in Zurich in winter
    await coordinator._handle_tick(datetime(2024, 1, 15, 18, 0, tzinfo=ZoneInfo("UTC")))

    assert mock_weather.async_get_tomorrow.await_count == 1


@pytest.mark.asyncio
async def test_tick_reset_after_midnight(coordinator, mock_weather, sample_of):
    """00:01 the next day resets the trigger and emits an event."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))
    resets = recorded_events(coordinator, HeaterEvent.TRIGGER_RESET)

    await coordinator._handle_tick(datetime(2024, 1, 15, 19, 0, tzinfo=ZURICH))
    await coordinator._handle_tick(datetime(2024, 1, 16, 0, 1, tzinfo=ZURICH))

    assert not coordinator.state.trigger.has_run_today
    assert len(resets) == 1
    assert resets[0].data == {"date": "2024-01-16"}


@pytest.mark.asyncio
async def test_startup_after_fetch_time_runs(coordinator, mock_weather, sample_of):
    """Starting at 21:00 runs today's cycle right away."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    with patch.object(
        coordinator, "local_now", return_value=datetime(2024, 1, 15, 21, 0, tzinfo=ZURICH)
    ):
        await coordinator._async_startup()

    assert mock_weather.async_get_tomorrow.await_count == 1
    assert coordinator.state.trigger.has_run_today


@pytest.mark.asyncio
async def test_startup_before_fetch_time_waits(coordinator, mock_weather):
    """Starting in the morning waits for the tick."""
    with patch.object(
        coordinator, "local_now", return_value=datetime(2024, 1, 15, 8, 0, tzinfo=ZURICH)
    ):
        await coordinator._async_startup()

    mock_weather.async_get_tomorrow.assert_not_awaited()
    assert not coordinator.state.trigger.has_run_today


@pytest.mark.asyncio
async def test_test_mode_is_dry_run(
    hass: HomeAssistant, entry_data, mock_weather, mock_device, sample_of
):
    """Test mode announces itself, runs immediately and never mutates the device."""
    entry = MockConfigEntry(domain=DOMAIN, data=entry_data, options={"test_mode": True})
    coordinator = HeaterCoordinator(hass, entry)
    coordinator.notifier.async_send = AsyncMock(return_value=True)
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    await coordinator._async_startup()

    first_message = coordinator.notifier.async_send.await_args_list[0].args[0]
    assert first_message == "Test mode activated. Notifications are working."
    mock_device.async_list_schedules.assert_awaited_once()
    mock_device.async_delete_all_schedules.assert_not_awaited()
    mock_device.async_create_schedule.assert_not_awaited()
    assert coordinator.state.last_result.dry_run
    assert coordinator.state.is_charge_scheduled
    assert not coordinator.state.trigger.has_run_today


@pytest.mark.asyncio
async def test_schedule_notification_sent(coordinator, mock_weather, sample_of):
    """A successful cycle sends its summary."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))
    coordinator.notifier.async_send_schedule = AsyncMock(return_value=True)

    await coordinator.async_run_decision_cycle()

    decision, plan, result = coordinator.notifier.async_send_schedule.await_args.args
    assert decision.source is DecisionSource.FORECAST
    assert plan.start_of_day == 3600
    assert result.created == {0: True, 1: True}


@pytest.mark.asyncio
async def test_unexpected_create_error_is_recorded(
    coordinator, mock_weather, mock_device, sample_of
):
    """A crash part way through creation still updates state before raising."""
    mock_weather.async_get_tomorrow.return_value = sample_of(*([5.0] * 24))

    async def create(action):
        if action.switch_id == 1:
            raise KeyError("id")
        return 100

    mock_device.async_create_schedule.side_effect = create
    failed = recorded_events(coordinator, HeaterEvent.SCHEDULE_FAILED)
    completed = recorded_events(coordinator, HeaterEvent.CYCLE_COMPLETED)

    with pytest.raises(ScheduleApplyError) as err:
        await coordinator.async_run_decision_cycle()

    assert isinstance(err.value.__cause__, KeyError)
    result = coordinator.state.last_result
    assert result.created == {0: True, 1: False}
    assert coordinator.state.last_run_summary.startswith("Unexpected error creating schedules")
    assert not coordinator.state.cycle_in_progress
    assert len(failed) == 1
    assert len(completed) == 1


@pytest.mark.asyncio
async def test_daily_tick_absorbed_by_manual_run(coordinator, mock_weather):
    """The fetch minute during a manual run latches the day and is logged."""
    coordinator.state.cycle_in_progress = True
    skipped = recorded_events(coordinator, HeaterEvent.CYCLE_SKIPPED)

    with patch.object(coordinator._logger, "info") as log_info:
        await coordinator._handle_tick(datetime(2024, 1, 15, 19, 0, tzinfo=ZURICH))

    mock_weather.async_get_tomorrow.assert_not_awaited()
    assert coordinator.state.trigger.has_run_today
    assert skipped[0].data == {"reason": "daily"}
    assert log_info.call_args_list[0].args[0] == "DAILY_TRIGGER_ABSORBED"
