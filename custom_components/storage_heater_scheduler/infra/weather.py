"""Open-Meteo client for tomorrow's hourly temperatures."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from ..const import (
    FORECAST_MIN_SAMPLES,
    FORECAST_TOMORROW_END,
    FORECAST_TOMORROW_START,
    OPEN_METEO_FORECAST_DAYS,
    OPEN_METEO_FORECAST_URL,
    OPEN_METEO_HOURLY_VARIABLE,
    WEATHER_TIMEOUT,
)
from ..exceptions import WeatherDataError, WeatherUnavailableError
from ..models import ForecastSample

_LOGGER = logging.getLogger(__name__)


def parse_tomorrow(payload: Any) -> ForecastSample:
    """Extract tomorrow's 24 hourly temperatures from a 2-day forecast.

    Raises:
        WeatherDataError: if the series is missing, too short or has gaps
    """
    try:
        series = payload["hourly"][OPEN_METEO_HOURLY_VARIABLE]
    except (KeyError, TypeError) as err:
        raise WeatherDataError("Forecast has no hourly temperature series") from err

    if not isinstance(series, list):
        raise WeatherDataError("Hourly temperature series is not a list")

    tomorrow = series[FORECAST_TOMORROW_START:FORECAST_TOMORROW_END]
    if len(tomorrow) < FORECAST_MIN_SAMPLES:
        raise WeatherDataError(
            f"Incomplete data: {len(tomorrow)} hourly values for tomorrow"
        )

    points: list[tuple[int, float]] = []
    for offset, value in enumerate(tomorrow, start=FORECAST_TOMORROW_START):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise WeatherDataError(f"Invalid temperature at hour {offset}: {value!r}")
        points.append((offset, float(value)))

    return ForecastSample(points=tuple(points))


class OpenMeteoClient:
    """Fetches the hourly temperature forecast."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        latitude: float,
        longitude: float,
        timezone: str,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session
            latitude: Location latitude
            longitude: Location longitude
            timezone: IANA timezone the hourly series is aligned to
        """
        self._session = session
        self._params = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "hourly": OPEN_METEO_HOURLY_VARIABLE,
            "timezone": timezone,
            "forecast_days": str(OPEN_METEO_FORECAST_DAYS),
        }

    async def async_get_tomorrow(self) -> ForecastSample:
        """Fetch and parse tomorrow's temperatures.

        Raises:
            WeatherUnavailableError: network error, timeout or non-200 status
            WeatherDataError: body is not valid JSON or data is incomplete
        """
        _LOGGER.debug("Fetching forecast with params %s", self._params)
        try:
            async with self._session.get(
                OPEN_METEO_FORECAST_URL,
                params=self._params,
                timeout=aiohttp.ClientTimeout(total=WEATHER_TIMEOUT),
            ) as response:
                if response.status != 200:
                    raise WeatherUnavailableError(
                        f"Weather API returned status {response.status}"
                    )
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise WeatherUnavailableError(f"Weather API unreachable: {err}") from err

        try:
            payload = json.loads(body.decode("utf-8"))
        except ValueError as err:
            raise WeatherDataError("Failed to parse weather data") from err

        sample = parse_tomorrow(payload)
        _LOGGER.debug("Received %d hourly temperatures for tomorrow", len(sample))
        return sample
