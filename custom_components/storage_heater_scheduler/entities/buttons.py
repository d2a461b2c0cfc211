"""Button entities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity
from homeassistant.helpers.entity import DeviceInfo

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DEFAULT_NAME, DOMAIN
from ..heater_logging import get_logger


class RunDecisionCycleButton(ButtonEntity):
    """Button to run the decision cycle now."""

    _attr_has_entity_name = True
    _attr_icon = "mdi:play-circle-outline"

    def __init__(
        self,
        entry_id: str,
        coordinator,
    ) -> None:
        """Initialize."""
        self._coordinator = coordinator
        self._logger = get_logger()

        self._attr_unique_id = f"{entry_id}_run_decision_cycle"
        self._attr_name = "Run Decision Cycle"

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry_id)},
            name=DEFAULT_NAME,
            manufacturer="Shelly",
            model="Pro (Gen2 RPC)",
        )

    async def async_press(self) -> None:
        """Handle button press."""
        self._logger.info("RUN_CYCLE_BUTTON_PRESSED")
        await self._coordinator.async_run_decision_cycle(reason="button")


async def async_setup_buttons(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up button entities."""
    async_add_entities([RunDecisionCycleButton(entry.entry_id, coordinator)])
