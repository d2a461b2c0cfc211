"""The Storage Heater Scheduler integration.

Sizes each night's storage heater charge from tomorrow's temperature forecast
and installs it on a Shelly relay as timed schedules ending at the charging
window end.

Architecture:
- Configuration and runtime state (core/state.py)
- Event bus (core/events.py)
- Pure scheduling logic (domain/*.py)
- Weather, device and notification clients (infra/*.py)
- Factory-based entities (entities/*.py)
"""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .coordinator import HeaterCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.BUTTON,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Storage Heater Scheduler from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    coordinator = HeaterCoordinator(hass, entry)
    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    await coordinator.async_init()

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    _LOGGER.info("Storage Heater Scheduler initialized for %s", coordinator.config.device_host)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: HeaterCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        coordinator.async_unload()

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after an options change."""
    await hass.config_entries.async_reload(entry.entry_id)
