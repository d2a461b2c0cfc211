"""Notification formatting and sending.

Messages go to any configured channel:
- A Home Assistant notify service (``notify.mobile_app_x``)
- The Telegram Bot API (text embedded percent-encoded in the query string)

Sending never raises; failures are logged and reported as False.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import quote

import aiohttp
from yarl import URL

from homeassistant.exceptions import HomeAssistantError

from ..const import NOTIFICATION_PREFIX, NOTIFY_TIMEOUT, TELEGRAM_API_URL
from ..domain.scheduler import format_time_of_day
from ..heater_logging import get_logger
from ..models import ChargeDecision, DecisionSource, ReconcileResult, SchedulePlan

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from ..core.state import HeaterConfig


def url_encode(text: str) -> str:
    """Percent-encode text for a URL query value.

    Everything but letters, digits and ``-_~`` is encoded, periods included.
    """
    return quote(text, safe="").replace(".", "%2E")


def format_schedule_message(
    decision: ChargeDecision,
    plan: SchedulePlan,
    result: ReconcileResult,
) -> str:
    """Summary of one decision cycle."""
    if decision.source is DecisionSource.FORECAST:
        basis = f"Forecast avg. {decision.average_temperature:.1f} °C"
    else:
        basis = f"Seasonal fallback (month {decision.month})"

    if plan.is_noop:
        headline = "No charging required tonight."
    else:
        prefix = "Would schedule" if result.dry_run else "Charging scheduled"
        headline = (
            f"{prefix}: {format_time_of_day(plan.start_of_day)} "
            f"for {plan.duration_seconds / 3600:.2f} h."
        )

    lines = [headline, basis]
    if plan.duration_seconds < decision.duration_seconds:
        lines.append(
            f"Requested {decision.duration_hours:.2f} h, capped to the charging window."
        )
    if result.failed_switches:
        failed = ", ".join(str(switch_id) for switch_id in result.failed_switches)
        lines.append(f"Failed switches: {failed}")
    return "\n".join(lines)


class Notifier:
    """Handles all notification sending."""

    def __init__(
        self,
        hass: HomeAssistant,
        session: aiohttp.ClientSession,
        config: HeaterConfig,
    ) -> None:
        """Initialize notifier.

        Args:
            hass: Home Assistant instance
            session: Shared aiohttp session for Telegram
            config: Heater configuration
        """
        self.hass = hass
        self._session = session
        self._config = config
        self._logger = get_logger()

    @property
    def is_configured(self) -> bool:
        """True if at least one channel is set up."""
        return bool(self._config.notify_service) or self._telegram_configured

    @property
    def _telegram_configured(self) -> bool:
        return bool(self._config.telegram_bot_token and self._config.telegram_chat_id)

    async def async_send(self, message: str) -> bool:
        """Send a message to every configured channel.

        Returns:
            True if at least one channel accepted the message
        """
        if not self.is_configured:
            self._logger.debug("NOTIFY_NOT_CONFIGURED")
            return False

        sent = False
        if self._config.notify_service:
            sent = await self._async_send_service(message) or sent
        if self._telegram_configured:
            sent = await self._async_send_telegram(message) or sent
        return sent

    async def async_send_error(self, message: str) -> bool:
        """Send a failure message if error notifications are enabled."""
        if not self._config.notify_on_error:
            return False
        return await self.async_send(message)

    async def async_send_schedule(
        self,
        decision: ChargeDecision,
        plan: SchedulePlan,
        result: ReconcileResult,
    ) -> bool:
        """Send the cycle summary if schedule notifications are enabled."""
        if not self._config.notify_on_schedule:
            return False
        return await self.async_send(format_schedule_message(decision, plan, result))

    async def _async_send_service(self, message: str) -> bool:
        notify_service = self._config.notify_service
        if "." not in notify_service:
            self._logger.error("NOTIFY_SERVICE_INVALID_FORMAT", service=notify_service)
            return False

        domain, service = notify_service.split(".", 1)
        try:
            await self.hass.services.async_call(
                domain, service, {"message": NOTIFICATION_PREFIX + message}
            )
        except HomeAssistantError as ex:
            self._logger.error(
                "NOTIFICATION_FAILED", channel="service", service=notify_service, error=str(ex)
            )
            return False

        self._logger.info("NOTIFICATION_SENT", channel="service", length=len(message))
        return True

    def telegram_url(self, message: str) -> str:
        """Fully encoded Telegram sendMessage URL."""
        return (
            f"{TELEGRAM_API_URL}/bot{self._config.telegram_bot_token}/sendMessage"
            f"?chat_id={url_encode(self._config.telegram_chat_id)}"
            f"&text={url_encode(NOTIFICATION_PREFIX + message)}"
        )

    async def _async_send_telegram(self, message: str) -> bool:
        try:
            async with self._session.get(
                URL(self.telegram_url(message), encoded=True),
                timeout=aiohttp.ClientTimeout(total=NOTIFY_TIMEOUT),
            ) as response:
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            self._logger.error("NOTIFICATION_FAILED", channel="telegram", error=str(ex))
            return False

        if status != 200:
            self._logger.error("NOTIFICATION_FAILED", channel="telegram", status=status)
            return False

        self._logger.info("NOTIFICATION_SENT", channel="telegram", length=len(message))
        return True
