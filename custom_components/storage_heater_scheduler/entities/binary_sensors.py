"""Binary sensor entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
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
class BinarySensorDefinition:
    """Definition for a binary sensor."""

    key: str
    name: str
    value_fn: Callable[[Any], bool]
    device_class: BinarySensorDeviceClass | None = None
    icon_on: str | None = None
    icon_off: str | None = None


BINARY_SENSOR_DEFINITIONS: list[BinarySensorDefinition] = [
    BinarySensorDefinition(
        key="ran_today",
        name="Ran Today",
        value_fn=lambda s: s.trigger.has_run_today,
        icon_on="mdi:calendar-check",
        icon_off="mdi:calendar-clock",
    ),
    BinarySensorDefinition(
        key="charge_scheduled",
        name="Charge Scheduled",
        value_fn=lambda s: s.is_charge_scheduled,
        device_class=BinarySensorDeviceClass.RUNNING,
    ),
    BinarySensorDefinition(
        key="test_mode",
        name="Test Mode",
        value_fn=lambda s: s.config.test_mode,
        icon_on="mdi:test-tube",
        icon_off="mdi:test-tube-off",
    ),
]


class HeaterBinarySensor(BinarySensorEntity):
    """Generic heater scheduler binary sensor."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        entry_id: str,
        state: HeaterState,
        definition: BinarySensorDefinition,
    ) -> None:
        """Initialize."""
        self._state = state
        self._definition = definition

        self._attr_unique_id = f"{entry_id}_{definition.key}"
        self._attr_name = definition.name
        self._attr_device_class = definition.device_class

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry_id)},
            name=DEFAULT_NAME,
            manufacturer="Shelly",
            model="Pro (Gen2 RPC)",
        )

    @property
    def icon(self) -> str | None:
        """Return icon based on state."""
        if self._definition.icon_on and self._definition.icon_off:
            return self._definition.icon_on if self.is_on else self._definition.icon_off
        return None

    async def async_added_to_hass(self) -> None:
        """Register for updates."""
        self.async_on_remove(
            async_dispatcher_connect(self.hass, SIGNAL_STATE_UPDATED, self._handle_update)
        )
        self._handle_update()

    @callback
    def _handle_update(self) -> None:
        """Handle state update."""
        self._attr_is_on = bool(self._definition.value_fn(self._state))
        self.async_write_ha_state()


async def async_setup_binary_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    state: HeaterState,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensor entities."""
    async_add_entities(
        HeaterBinarySensor(entry.entry_id, state, definition)
        for definition in BINARY_SENSOR_DEFINITIONS
    )
