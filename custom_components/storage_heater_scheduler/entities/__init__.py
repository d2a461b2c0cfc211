"""Entities module - HA entity definitions using factory pattern.

All entities are thin wrappers that:
- Read from HeaterState
- Delegate actions to the coordinator
"""

from .binary_sensors import BINARY_SENSOR_DEFINITIONS, async_setup_binary_sensors
from .buttons import async_setup_buttons
from .sensors import SENSOR_DEFINITIONS, async_setup_sensors

__all__ = [
    "async_setup_sensors",
    "async_setup_binary_sensors",
    "async_setup_buttons",
    "SENSOR_DEFINITIONS",
    "BINARY_SENSOR_DEFINITIONS",
]
