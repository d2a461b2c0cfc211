"""Config flow for Storage Heater Scheduler integration."""
from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    CONF_CHARGING_WINDOW_END,
    CONF_CHARGING_WINDOW_START,
    CONF_DATA_FETCH_TIME,
    CONF_DEVICE_HOST,
    CONF_FALLBACK_HOURS_Q1,
    CONF_FALLBACK_HOURS_Q2,
    CONF_FALLBACK_HOURS_Q3,
    CONF_FALLBACK_HOURS_Q4,
    CONF_FILE_LOGGING,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_MAX_RUNTIME_HOURS,
    CONF_NOTIFY_ON_ERROR,
    CONF_NOTIFY_ON_SCHEDULE,
    CONF_NOTIFY_SERVICE,
    CONF_SLOPE,
    CONF_START_TEMP,
    CONF_SWITCH_IDS,
    CONF_TELEGRAM_BOT_TOKEN,
    CONF_TELEGRAM_CHAT_ID,
    CONF_TEST_INTERVAL_MINUTES,
    CONF_TEST_MODE,
    CONF_TIMEZONE,
    DEFAULT_CHARGING_WINDOW_END,
    DEFAULT_CHARGING_WINDOW_START,
    DEFAULT_DATA_FETCH_TIME,
    DEFAULT_FALLBACK_HOURS_Q1,
    DEFAULT_FALLBACK_HOURS_Q2,
    DEFAULT_FALLBACK_HOURS_Q3,
    DEFAULT_FALLBACK_HOURS_Q4,
    DEFAULT_FILE_LOGGING,
    DEFAULT_MAX_RUNTIME_HOURS,
    DEFAULT_NAME,
    DEFAULT_NOTIFY_ON_ERROR,
    DEFAULT_NOTIFY_ON_SCHEDULE,
    DEFAULT_SLOPE,
    DEFAULT_START_TEMP,
    DEFAULT_SWITCH_IDS,
    DEFAULT_TEST_INTERVAL_MINUTES,
    DEFAULT_TEST_MODE,
    DOMAIN,
)
from .core.state import parse_switch_ids
from .domain.scheduler import parse_time_of_day
from .exceptions import DeviceError
from .infra.device import ShellyRpcClient


def validate_window(user_input: dict[str, Any]) -> str | None:
    """Return an error key if the window or fetch time is unusable."""
    try:
        start = parse_time_of_day(
            user_input.get(CONF_CHARGING_WINDOW_START, DEFAULT_CHARGING_WINDOW_START)
        )
        end = parse_time_of_day(
            user_input.get(CONF_CHARGING_WINDOW_END, DEFAULT_CHARGING_WINDOW_END)
        )
        parse_time_of_day(user_input.get(CONF_DATA_FETCH_TIME, DEFAULT_DATA_FETCH_TIME))
    except ValueError:
        return "invalid_time"

    # Overnight windows (e.g. 22:00 to 06:00) are fine, empty ones are not
    if start // 60 == end // 60:
        return "invalid_window"
    return None


def validate_telegram(user_input: dict[str, Any]) -> str | None:
    """Token and chat id must be given together."""
    token = (user_input.get(CONF_TELEGRAM_BOT_TOKEN) or "").strip()
    chat_id = str(user_input.get(CONF_TELEGRAM_CHAT_ID) or "").strip()
    if bool(token) != bool(chat_id):
        return "invalid_telegram"
    return None


def _hours_selector(maximum: float = 24) -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=0,
            max=maximum,
            step=0.25,
            unit_of_measurement="h",
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def _schedule_schema(defaults: dict[str, Any]) -> dict:
    return {
        vol.Required(
            CONF_CHARGING_WINDOW_START,
            default=defaults.get(CONF_CHARGING_WINDOW_START, DEFAULT_CHARGING_WINDOW_START),
        ): selector.TimeSelector(),
        vol.Required(
            CONF_CHARGING_WINDOW_END,
            default=defaults.get(CONF_CHARGING_WINDOW_END, DEFAULT_CHARGING_WINDOW_END),
        ): selector.TimeSelector(),
        vol.Required(
            CONF_DATA_FETCH_TIME,
            default=defaults.get(CONF_DATA_FETCH_TIME, DEFAULT_DATA_FETCH_TIME),
        ): selector.TimeSelector(),
    }


def _curve_schema(defaults: dict[str, Any]) -> dict:
    return {
        vol.Required(
            CONF_START_TEMP, default=defaults.get(CONF_START_TEMP, DEFAULT_START_TEMP)
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=-20,
                max=30,
                step=0.5,
                unit_of_measurement="°C",
                mode=selector.NumberSelectorMode.BOX,
            )
        ),
        vol.Required(
            CONF_SLOPE, default=defaults.get(CONF_SLOPE, DEFAULT_SLOPE)
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=0,
                max=5,
                step=0.05,
                unit_of_measurement="h/°C",
                mode=selector.NumberSelectorMode.BOX,
            )
        ),
        vol.Required(
            CONF_MAX_RUNTIME_HOURS,
            default=defaults.get(CONF_MAX_RUNTIME_HOURS, DEFAULT_MAX_RUNTIME_HOURS),
        ): _hours_selector(),
    }


def _fallback_schema(defaults: dict[str, Any]) -> dict:
    return {
        vol.Required(
            CONF_FALLBACK_HOURS_Q1,
            default=defaults.get(CONF_FALLBACK_HOURS_Q1, DEFAULT_FALLBACK_HOURS_Q1),
        ): _hours_selector(),
        vol.Required(
            CONF_FALLBACK_HOURS_Q2,
            default=defaults.get(CONF_FALLBACK_HOURS_Q2, DEFAULT_FALLBACK_HOURS_Q2),
        ): _hours_selector(),
        vol.Required(
            CONF_FALLBACK_HOURS_Q3,
            default=defaults.get(CONF_FALLBACK_HOURS_Q3, DEFAULT_FALLBACK_HOURS_Q3),
        ): _hours_selector(),
        vol.Required(
            CONF_FALLBACK_HOURS_Q4,
            default=defaults.get(CONF_FALLBACK_HOURS_Q4, DEFAULT_FALLBACK_HOURS_Q4),
        ): _hours_selector(),
    }


def _notification_schema(defaults: dict[str, Any], notify_services: list) -> dict:
    schema_dict = {
        vol.Optional(
            CONF_TELEGRAM_BOT_TOKEN,
            default=defaults.get(CONF_TELEGRAM_BOT_TOKEN, ""),
        ): selector.TextSelector(
            selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
        ),
        vol.Optional(
            CONF_TELEGRAM_CHAT_ID,
            default=defaults.get(CONF_TELEGRAM_CHAT_ID, ""),
        ): selector.TextSelector(),
        vol.Optional(
            CONF_NOTIFY_ON_SCHEDULE,
            default=defaults.get(CONF_NOTIFY_ON_SCHEDULE, DEFAULT_NOTIFY_ON_SCHEDULE),
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_NOTIFY_ON_ERROR,
            default=defaults.get(CONF_NOTIFY_ON_ERROR, DEFAULT_NOTIFY_ON_ERROR),
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_TEST_MODE, default=defaults.get(CONF_TEST_MODE, DEFAULT_TEST_MODE)
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_TEST_INTERVAL_MINUTES,
            default=defaults.get(CONF_TEST_INTERVAL_MINUTES, DEFAULT_TEST_INTERVAL_MINUTES),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=1,
                max=60,
                step=1,
                unit_of_measurement="min",
                mode=selector.NumberSelectorMode.BOX,
            )
        ),
    }

    if notify_services:
        schema_dict[vol.Optional(
            CONF_NOTIFY_SERVICE,
            default=defaults.get(CONF_NOTIFY_SERVICE, ""),
        )] = selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=notify_services,
                mode=selector.SelectSelectorMode.DROPDOWN,
                custom_value=True,
            )
        )
    else:
        schema_dict[vol.Optional(
            CONF_NOTIFY_SERVICE,
            default=defaults.get(CONF_NOTIFY_SERVICE, ""),
        )] = selector.TextSelector(
            selector.TextSelectorConfig(type=selector.TextSelectorType.TEXT)
        )
    return schema_dict


def _get_notify_services(hass) -> list[dict[str, str]]:
    """Get list of available notify services."""
    notify_services = hass.services.async_services().get("notify", {})
    return [
        {"value": f"notify.{service}", "label": f"notify.{service}"}
        for service in notify_services
    ]


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Storage Heater Scheduler."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self.device_info: dict[str, Any] = {}
        self.schedule_info: dict[str, Any] = {}
        self.forecast_info: dict[str, Any] = {}
        self.fallback_info: dict[str, Any] = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 1: Device - Shelly host and switch outputs."""
        errors: dict[str, str] = {}

        if user_input is not None:
            host = user_input[CONF_DEVICE_HOST].strip()
            try:
                switch_ids = parse_switch_ids(user_input[CONF_SWITCH_IDS])
            except ValueError:
                errors[CONF_SWITCH_IDS] = "invalid_switch_ids"

            if not errors:
                await self.async_set_unique_id(host.lower())
                self._abort_if_unique_id_configured()

                client = ShellyRpcClient(async_get_clientsession(self.hass), host)
                try:
                    await client.async_get_status()
                except DeviceError:
                    errors["base"] = "cannot_connect"

            if not errors:
                self.device_info = {
                    CONF_DEVICE_HOST: host,
                    CONF_SWITCH_IDS: ", ".join(str(i) for i in switch_ids),
                }
                return await self.async_step_schedule()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_DEVICE_HOST): selector.TextSelector(),
                    vol.Required(
                        CONF_SWITCH_IDS, default=DEFAULT_SWITCH_IDS
                    ): selector.TextSelector(),
                }
            ),
            errors=errors,
        )

    async def async_step_schedule(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 2: Charging window and daily fetch time."""
        errors: dict[str, str] = {}

        if user_input is not None:
            if error := validate_window(user_input):
                errors["base"] = error
            else:
                self.schedule_info = user_input
                return await self.async_step_forecast()

        return self.async_show_form(
            step_id="schedule",
            data_schema=vol.Schema(_schedule_schema(user_input or {})),
            errors=errors,
        )

    async def async_step_forecast(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 3: Forecast location and heating curve."""
        if user_input is not None:
            self.forecast_info = user_input
            return await self.async_step_fallback()

        schema_dict = {
            vol.Required(
                CONF_LATITUDE, default=self.hass.config.latitude
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=-90, max=90, step="any", mode=selector.NumberSelectorMode.BOX
                )
            ),
            vol.Required(
                CONF_LONGITUDE, default=self.hass.config.longitude
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=-180, max=180, step="any", mode=selector.NumberSelectorMode.BOX
                )
            ),
            vol.Required(
                CONF_TIMEZONE, default=self.hass.config.time_zone
            ): selector.TextSelector(),
            **_curve_schema({}),
        }

        return self.async_show_form(
            step_id="forecast",
            data_schema=vol.Schema(schema_dict),
        )

    async def async_step_fallback(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 4: Seasonal fallback hours per quarter."""
        if user_input is not None:
            self.fallback_info = user_input
            return await self.async_step_notifications()

        return self.async_show_form(
            step_id="fallback",
            data_schema=vol.Schema(_fallback_schema({})),
        )

    async def async_step_notifications(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 5: Notifications and test mode."""
        errors: dict[str, str] = {}

        if user_input is not None:
            if error := validate_telegram(user_input):
                errors["base"] = error
            else:
                data = {
                    **self.device_info,
                    **self.schedule_info,
                    **self.forecast_info,
                    **self.fallback_info,
                    **user_input,
                }
                return self.async_create_entry(
                    title=f"{DEFAULT_NAME} ({self.device_info[CONF_DEVICE_HOST]})",
                    data=data,
                )

        return self.async_show_form(
            step_id="notifications",
            data_schema=vol.Schema(
                _notification_schema(user_input or {}, _get_notify_services(self.hass))
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Create the options flow."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Storage Heater Scheduler."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._config_entry = config_entry

    def _current(self) -> dict[str, Any]:
        """Current values, options layered over data."""
        return {**self._config_entry.data, **self._config_entry.options}

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options - single page for simplicity."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                parse_switch_ids(user_input[CONF_SWITCH_IDS])
            except ValueError:
                errors[CONF_SWITCH_IDS] = "invalid_switch_ids"

            error = validate_window(user_input) or validate_telegram(user_input)
            if error:
                errors["base"] = error

            if not errors:
                return self.async_create_entry(title="", data=user_input)

        current = {**self._current(), **(user_input or {})}

        schema_dict = {
            vol.Required(
                CONF_SWITCH_IDS, default=current.get(CONF_SWITCH_IDS, DEFAULT_SWITCH_IDS)
            ): selector.TextSelector(),
            **_schedule_schema(current),
            **_curve_schema(current),
            **_fallback_schema(current),
            **_notification_schema(current, _get_notify_services(self.hass)),
            vol.Optional(
                CONF_FILE_LOGGING,
                default=current.get(CONF_FILE_LOGGING, DEFAULT_FILE_LOGGING),
            ): selector.BooleanSelector(),
        }

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(schema_dict),
            errors=errors,
        )
