"""Exceptions for the Storage Heater Scheduler integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError

if TYPE_CHECKING:
    from .models import ReconcileResult


class WeatherError(HomeAssistantError):
    """Forecast could not be used."""


class WeatherUnavailableError(WeatherError):
    """Forecast provider unreachable or returned a non-200 status."""


class WeatherDataError(WeatherError):
    """Forecast response was malformed or incomplete."""


class DeviceError(HomeAssistantError):
    """An RPC call to the switch device failed."""

    def __init__(self, method: str, message: str, code: int | None = None) -> None:
        """Initialize the error.

        Args:
            method: RPC method that failed
            message: Human readable reason
            code: Device error code, if the device returned one
        """
        super().__init__(f"{method} failed: {message}")
        self.method = method
        self.code = code


class ScheduleApplyError(HomeAssistantError):
    """Creating stored actions failed unexpectedly part way through.

    Carries the partial result so the caller can record what was created.
    """

    def __init__(self, result: ReconcileResult) -> None:
        """Initialize the error."""
        super().__init__(result.error)
        self.result = result
