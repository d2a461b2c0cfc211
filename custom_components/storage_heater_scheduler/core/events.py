"""Event Bus for component communication.

Every event is logged; plan-affecting events also trigger an entity refresh
through the Home Assistant dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from homeassistant.helpers.dispatcher import async_dispatcher_send

from ..const import SIGNAL_STATE_UPDATED
from ..heater_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class HeaterEvent(str, Enum):
    """Event types for the heater scheduler."""

    # Decision cycle
    CYCLE_STARTED = "heater.cycle_started"
    CYCLE_COMPLETED = "heater.cycle_completed"
    CYCLE_SKIPPED = "heater.cycle_skipped"

    # Forecast
    FORECAST_RECEIVED = "heater.forecast_received"
    FORECAST_FAILED = "heater.forecast_failed"
    DECISION_MADE = "heater.decision_made"

    # Device schedules
    SCHEDULE_APPLIED = "heater.schedule_applied"
    SCHEDULE_FAILED = "heater.schedule_failed"

    # Trigger
    TRIGGER_RESET = "heater.trigger_reset"


# Events that change what the entities show
_REFRESH_EVENTS = {
    HeaterEvent.CYCLE_STARTED,
    HeaterEvent.CYCLE_COMPLETED,
    HeaterEvent.TRIGGER_RESET,
}


@dataclass
class EventData:
    """Container for event data."""

    event: HeaterEvent
    timestamp: datetime
    data: dict[str, Any]


EventHandler = Callable[[EventData], Awaitable[None]]


class HeaterEventBus:
    """Central event bus for the integration."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the event bus."""
        self.hass = hass
        self._logger = get_logger()
        self._handlers: dict[HeaterEvent, list[EventHandler]] = {}

    async def emit(self, event: HeaterEvent, **data: Any) -> None:
        """Emit an event.

        Args:
            event: Event type to emit
            **data: Event data
        """
        event_data = EventData(event=event, timestamp=datetime.now(), data=data)

        self._logger.debug(f"EVENT_{event.name}", **data)

        for handler in list(self._handlers.get(event, [])):
            await handler(event_data)

        if event in _REFRESH_EVENTS:
            async_dispatcher_send(self.hass, SIGNAL_STATE_UPDATED)

    def on(self, event: HeaterEvent, handler: EventHandler) -> Callable[[], None]:
        """Register an event handler.

        Returns:
            Unsubscribe function
        """
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            self.off(event, handler)

        return unsubscribe

    def off(self, event: HeaterEvent, handler: EventHandler) -> None:
        """Unregister an event handler."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
