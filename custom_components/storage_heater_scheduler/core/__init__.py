"""Core module for Storage Heater Scheduler.

Contains the fundamental building blocks:
- State: immutable configuration and runtime state
- Events: event bus for component communication
"""

from .events import HeaterEvent, HeaterEventBus
from .state import HeaterConfig, HeaterState

__all__ = ["HeaterConfig", "HeaterEvent", "HeaterEventBus", "HeaterState"]
