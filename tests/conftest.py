"""Fixtures for testing."""
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.storage_heater_scheduler.const import (
    CONF_CHARGING_WINDOW_END,
    CONF_CHARGING_WINDOW_START,
    CONF_DATA_FETCH_TIME,
    CONF_DEVICE_HOST,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_SWITCH_IDS,
    CONF_TIMEZONE,
    DOMAIN,
)
from custom_components.storage_heater_scheduler.models import ForecastSample

DEVICE_HOST = "192.168.1.50"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations defined in the test dir."""
    yield


@pytest.fixture
def entry_data():
    """Minimal config entry data."""
    return {
        CONF_DEVICE_HOST: DEVICE_HOST,
        CONF_SWITCH_IDS: "0, 1",
        CONF_CHARGING_WINDOW_START: "22:00:00",
        CONF_CHARGING_WINDOW_END: "06:00:00",
        CONF_DATA_FETCH_TIME: "19:00:00",
        CONF_LATITUDE: 47.37,
        CONF_LONGITUDE: 8.54,
        CONF_TIMEZONE: "Europe/Zurich",
    }


@pytest.fixture
def mock_config_entry(entry_data):
    """Mock config entry for the integration."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Storage Heater Scheduler",
        data=entry_data,
        unique_id=DEVICE_HOST,
    )


@pytest.fixture
def mock_entry(entry_data):
    """Plain mock entry for tests that do not need hass."""
    entry = MagicMock()
    entry.data = entry_data
    entry.options = {}
    entry.entry_id = "test_entry_id"
    return entry


@pytest.fixture
def forecast_payload():
    """Build a two-day Open-Meteo payload with the given values for tomorrow."""

    def _build(tomorrow: list, today: list | None = None) -> dict:
        return {
            "hourly": {
                "time": [f"t{i}" for i in range(24 + len(tomorrow))],
                "temperature_2m": (today if today is not None else [20.0] * 24)
                + tomorrow,
            }
        }

    return _build


@pytest.fixture
def sample_of():
    """Build a forecast sample with hour offsets starting at 24."""

    def _build(*temperatures: float) -> ForecastSample:
        return ForecastSample(
            points=tuple((24 + i, float(t)) for i, t in enumerate(temperatures))
        )

    return _build


@pytest.fixture
def mock_store():
    """Fake timed-action store."""
    store = MagicMock()
    store.async_list_schedules = AsyncMock(return_value=[{"id": 1}, {"id": 2}])
    store.async_delete_all_schedules = AsyncMock(return_value=None)
    store.async_create_schedule = AsyncMock(side_effect=lambda action: 10 + action.switch_id)
    return store


@pytest.fixture
def today():
    """Fixed calendar day."""
    return date(2024, 1, 15)


@pytest.fixture
def mock_weather():
    """Patched Open-Meteo client."""
    with patch(
        "custom_components.storage_heater_scheduler.coordinator.OpenMeteoClient"
    ) as client_cls:
        client = client_cls.return_value
        client.async_get_tomorrow = AsyncMock(
            return_value=ForecastSample(points=tuple((24 + i, 5.0) for i in range(24)))
        )
        yield client


@pytest.fixture
def mock_device():
    """Patched Shelly RPC client."""
    with patch(
        "custom_components.storage_heater_scheduler.coordinator.ShellyRpcClient"
    ) as client_cls:
        client = client_cls.return_value
        client.async_get_status = AsyncMock(
            return_value={"unixtime": 1705320000}  # 2024-01-15 12:00 UTC
        )
        client.async_list_schedules = AsyncMock(return_value=[])
        client.async_delete_all_schedules = AsyncMock(return_value=None)
        client.async_create_schedule = AsyncMock(
            side_effect=lambda action: 100 + action.switch_id
        )
        yield client
