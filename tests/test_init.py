"""Test integration setup, entities and services."""
from unittest.mock import patch

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import STATE_OFF, STATE_ON
from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_registry as er
from homeassistant.loader import async_get_integration

from custom_components.storage_heater_scheduler.const import (
    DOMAIN,
    SERVICE_RUN_DECISION_CYCLE,
)


def state_of(hass: HomeAssistant, entry, platform: str, key: str):
    """State of an integration entity looked up by its unique id."""
    registry = er.async_get(hass)
    entity_id = registry.async_get_entity_id(platform, DOMAIN, f"{entry.entry_id}_{key}")
    assert entity_id is not None
    return hass.states.get(entity_id)


@pytest.fixture
async def setup_integration(hass: HomeAssistant, mock_config_entry, mock_weather, mock_device):
    """Set up the integration with mocked collaborators."""
    mock_config_entry.add_to_hass(hass)

    # Keep the startup check from racing the tests
    with patch(
        "custom_components.storage_heater_scheduler.coordinator.HeaterCoordinator._async_startup"
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    yield mock_config_entry

    if mock_config_entry.state is ConfigEntryState.LOADED:
        assert await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()


@pytest.mark.asyncio
async def test_setup_and_unload(hass: HomeAssistant, setup_integration):
    """Entry loads, registers its service and unloads cleanly."""
    entry = setup_integration
    assert entry.state is ConfigEntryState.LOADED
    assert hass.services.has_service(DOMAIN, SERVICE_RUN_DECISION_CYCLE)

    assert await hass.config_entries.async_unload(entry.entry_id)
    await hass.async_block_till_done()

    assert entry.state is ConfigEntryState.NOT_LOADED
    assert not hass.services.has_service(DOMAIN, SERVICE_RUN_DECISION_CYCLE)
    assert DOMAIN not in hass.data or entry.entry_id not in hass.data[DOMAIN]


@pytest.mark.asyncio
async def test_entities_before_first_run(hass: HomeAssistant, setup_integration):
    """Entities exist and show the initial state."""
    window = state_of(hass, setup_integration, "sensor", "charging_window")
    assert window.state == "22:00 - 06:00"

    summary = state_of(hass, setup_integration, "sensor", "last_run_summary")
    assert summary.state == "Not run yet"

    ran_today = state_of(hass, setup_integration, "binary_sensor", "ran_today")
    assert ran_today.state == STATE_OFF

    test_mode = state_of(hass, setup_integration, "binary_sensor", "test_mode")
    assert test_mode.state == STATE_OFF


@pytest.mark.asyncio
async def test_service_runs_cycle(hass: HomeAssistant, setup_integration, mock_device):
    """The service runs a cycle and the entities refresh."""
    await hass.services.async_call(DOMAIN, SERVICE_RUN_DECISION_CYCLE, {}, blocking=True)
    await hass.async_block_till_done()

    assert mock_device.async_create_schedule.await_count == 2

    start = state_of(hass, setup_integration, "sensor", "scheduled_start")
    assert start.state == "01:00"
    duration = state_of(hass, setup_integration, "sensor", "charge_duration")
    assert float(duration.state) == 5.0
    source = state_of(hass, setup_integration, "sensor", "decision_source")
    assert source.state == "forecast"
    scheduled = state_of(hass, setup_integration, "binary_sensor", "charge_scheduled")
    assert scheduled.state == STATE_ON


@pytest.mark.asyncio
async def test_button_runs_cycle(hass: HomeAssistant, setup_integration, mock_weather):
    """Pressing the button runs a cycle."""
    button = state_of(hass, setup_integration, "button", "run_decision_cycle")
    await hass.services.async_call(
        "button", "press", {"entity_id": button.entity_id}, blocking=True
    )
    await hass.async_block_till_done()

    mock_weather.async_get_tomorrow.assert_awaited_once()
    summary = state_of(hass, setup_integration, "sensor", "last_run_summary")
    assert summary.state == "Start 01:00 for 5.00 h (forecast)"


@pytest.mark.asyncio
async def test_manifest_loads(hass: HomeAssistant):
    """The manifest is valid and carries no placeholder links."""
    integration = await async_get_integration(hass, DOMAIN)

    assert integration.domain == DOMAIN
    assert integration.config_flow
    assert str(integration.version) == "1.0.0"
    assert integration.documentation is None
    assert integration.issue_tracker is None
