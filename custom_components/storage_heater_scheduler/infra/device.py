"""Shelly Gen2 RPC client for the switch device.

Covers the capabilities the scheduler needs:
- Sys.GetStatus: device clock (month for the seasonal fallback)
- Schedule.List / Schedule.DeleteAll / Schedule.Create: timed switch actions

Calls go to ``POST http://<host>/rpc/<Method>`` with the params as JSON body.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from typing import Any

import aiohttp

from ..const import DEVICE_TIMEOUT
from ..domain.scheduler import cron_timespec
from ..exceptions import DeviceError
from ..models import ScheduledAction

_LOGGER = logging.getLogger(__name__)


def month_from_status(status: Any, tz: tzinfo) -> int:
    """Calendar month of the device clock in the given timezone."""
    if not isinstance(status, dict):
        raise DeviceError("Sys.GetStatus", "status is not an object")
    sys_status = status.get("sys", status)
    unixtime = sys_status.get("unixtime") if isinstance(sys_status, dict) else None
    if not isinstance(unixtime, (int, float)):
        raise DeviceError("Sys.GetStatus", "status has no unixtime")
    return datetime.fromtimestamp(unixtime, tz).month


class ShellyRpcClient:
    """Minimal async RPC client for a Shelly Gen2 device."""

    def __init__(self, session: aiohttp.ClientSession, host: str) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session
            host: Device host or IP, optionally with port
        """
        self._session = session
        self._base_url = f"http://{host.rstrip('/')}/rpc"

    async def _async_call(
        self, method: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Call one RPC method and return its result.

        Raises:
            DeviceError: on network failure, timeout or device error reply
        """
        try:
            async with self._session.post(
                f"{self._base_url}/{method}",
                json=params or {},
                timeout=aiohttp.ClientTimeout(total=DEVICE_TIMEOUT),
            ) as response:
                payload = await response.json(content_type=None)
                if response.status != 200:
                    code = payload.get("code") if isinstance(payload, dict) else None
                    message = (
                        payload.get("message") if isinstance(payload, dict) else None
                    )
                    raise DeviceError(
                        method, message or f"HTTP status {response.status}", code
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise DeviceError(method, str(err) or type(err).__name__) from err

        _LOGGER.debug("RPC %s -> %s", method, payload)
        return payload

    async def async_get_status(self) -> dict[str, Any]:
        """Return the Sys component status (unixtime, time, ...)."""
        return await self._async_call("Sys.GetStatus")

    async def async_list_schedules(self) -> list[dict[str, Any]]:
        """Return stored schedule jobs."""
        result = await self._async_call("Schedule.List")
        if not isinstance(result, dict):
            raise DeviceError("Schedule.List", "unexpected reply")
        return list(result.get("jobs", []))

    async def async_delete_all_schedules(self) -> None:
        """Delete every stored schedule job."""
        await self._async_call("Schedule.DeleteAll")

    async def async_create_schedule(self, action: ScheduledAction) -> int:
        """Create a daily job: switch on at start, off after the duration."""
        result = await self._async_call(
            "Schedule.Create",
            {
                "enable": True,
                "timespec": cron_timespec(action.start_of_day),
                "calls": [
                    {
                        "method": "Switch.Set",
                        "params": {
                            "id": action.switch_id,
                            "on": True,
                            "toggle_after": action.duration_seconds,
                        },
                    }
                ],
            },
        )
        if not isinstance(result, dict) or "id" not in result:
            raise DeviceError("Schedule.Create", "reply has no job id")
        return result["id"]
