"""Sensor entities using factory pattern.

Each sensor is one SensorDefinition reading from HeaterState.
Add a new sensor = add one line to SENSOR_DEFINITIONS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import UnitOfTemperature, UnitOfTime
from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import DeviceInfo

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from ..core.state import HeaterState

from ..const import DEFAULT_NAME, DOMAIN, SIGNAL_STATE_UPDATED


@dataclass
class SensorDefinition:
    """Definition for a sensor entity."""

    key: str  # Unique identifier
    name: str  # Display name
    value_fn: Callable[[Any], Any]  # Function to get value from state
    unit: str | None = None
    device_class: SensorDeviceClass | None = None
    state_class: SensorStateClass | None = None
    icon: str | None = None


SENSOR_DEFINITIONS: list[SensorDefinition] = [
    # Decision
    SensorDefinition(
        key="charge_duration",
        name="Charge Duration",
        value_fn=lambda s: s.charge_duration_hours,
        unit=UnitOfTime.HOURS,
        device_class=SensorDeviceClass.DURATION,
        state_class=SensorStateClass.MEASUREMENT,
        icon="mdi:timer-outline",
    ),
    SensorDefinition(
        key="average_temperature",
        name="Tomorrow Average Temperature",
        value_fn=lambda s: s.average_temperature,
        unit=UnitOfTemperature.CELSIUS,
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
    ),
    SensorDefinition(
        key="decision_source",
        name="Decision Source",
        value_fn=lambda s: s.decision_source,
        icon="mdi:weather-partly-cloudy",
    ),

    # Schedule
    SensorDefinition(
        key="scheduled_start",
        name="Scheduled Start",
        value_fn=lambda s: s.scheduled_start,
        icon="mdi:clock-start",
    ),
    SensorDefinition(
        key="charging_window",
        name="Charging Window",
        value_fn=lambda s: s.charging_window,
        icon="mdi:clock-time-four-outline",
    ),

    # Last run info
    SensorDefinition(
        key="last_run_summary",
        name="Last Run Summary",
        value_fn=lambda s: s.last_run_summary,
        icon="mdi:text-box-outline",
    ),
    SensorDefinition(
        key="last_run_time",
        name="Last Run Time",
        value_fn=lambda s: s.last_run_time,
        device_class=SensorDeviceClass.TIMESTAMP,
    ),
]


class HeaterSensor(SensorEntity):
    """Generic heater scheduler sensor entity."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        entry_id: str,
        state: HeaterState,
        definition: SensorDefinition,
    ) -> None:
        """Initialize the sensor."""
        self._state = state
        self._definition = definition

        self._attr_unique_id = f"{entry_id}_{definition.key}"
        self._attr_name = definition.name
        self._attr_native_unit_of_measurement = definition.unit
        self._attr_device_class = definition.device_class
        self._attr_state_class = definition.state_class
        if definition.icon:
            self._attr_icon = definition.icon

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry_id)},
            name=DEFAULT_NAME,
            manufacturer="Shelly",
            model="Pro (Gen2 RPC)",
        )

    async def async_added_to_hass(self) -> None:
        """Register for updates."""
        self.async_on_remove(
            async_dispatcher_connect(self.hass, SIGNAL_STATE_UPDATED, self._handle_update)
        )
        self._handle_update()

    @callback
    def _handle_update(self) -> None:
        """Handle state update."""
        self._attr_native_value = self._definition.value_fn(self._state)
        self.async_write_ha_state()


async def async_setup_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    state: HeaterState,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up all sensor entities."""
    async_add_entities(
        HeaterSensor(entry.entry_id, state, definition)
        for definition in SENSOR_DEFINITIONS
    )
