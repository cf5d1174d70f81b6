"""
Weather briefing service for dronepilot.

Uses the Weather Underground personal weather station API
(https://api.weather.com/v2/pws/observations/current) to describe the
current conditions at the flying site.  The station id and API key come from
configuration.

``WeatherService.get_briefing()`` never raises for missing configuration; it
returns ``WEATHER_UNCONFIGURED`` instead.  Only transport failures raise
``WeatherError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_OBSERVATIONS_URL = "https://api.weather.com/v2/pws/observations/current"

WEATHER_UNCONFIGURED = "Weather info has not been configured."
WEATHER_UNAVAILABLE = "Weather info is currently unavailable."


class WeatherError(Exception):
    """Raised when the weather API cannot be reached or errors out."""


class WeatherService:
    """Fetches a textual briefing from a personal weather station.

    Attributes:
        api_key: Weather Underground API key.
        station_id: Personal weather station id, e.g. ``"KCASANFR1234"``.
        timeout: HTTP request timeout in seconds (default 10).
    """

    def __init__(
        self,
        api_key: str,
        station_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.station_id = station_id
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip() and self.station_id.strip())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_briefing(self) -> str:
        """Return a multi-line description of the latest observation.

        Raises:
            WeatherError: If the request fails or returns a non-2xx status.
        """
        if not self.configured:
            logger.info("Weather station is not configured; skipping lookup")
            return WEATHER_UNCONFIGURED

        observation = await self._fetch_observation()
        if observation is None:
            return WEATHER_UNAVAILABLE
        return self._format(observation)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch_observation(self) -> dict[str, Any] | None:
        logger.debug("Fetching weather observation for station %s", self.station_id)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    _OBSERVATIONS_URL,
                    params={
                        "apiKey": self.api_key,
                        "stationId": self.station_id,
                        "numericPrecision": "decimal",
                        "format": "json",
                        "units": "e",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Weather API HTTP error: %s", exc.response.status_code)
            raise WeatherError(f"Weather service error: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Weather API request failed: %s", exc)
            raise WeatherError(f"Weather service unreachable: {exc}") from exc

        # The API answers 204 with an empty body when the station is offline.
        if not response.content:
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("Weather API returned a non-JSON body")
            return None

        observations = data.get("observations") if isinstance(data, dict) else None
        if not isinstance(observations, list) or not observations:
            return None
        if not isinstance(observations[0], dict):
            logger.warning("Weather API returned a malformed observation: %r", observations[0])
            return None
        return observations[0]

    @staticmethod
    def _format(observation: dict[str, Any]) -> str:
        imperial = observation.get("imperial")
        if not isinstance(imperial, dict):
            imperial = {}
        return "\n".join(
            [
                f"Time Observed (UTC): {observation.get('obsTimeUtc')}",
                f"Wind Direction: {observation.get('winddir')}",
                f"Wind Speed (MPH): {imperial.get('windSpeed')}",
                f"Wind Gust (MPH): {imperial.get('windGust')}",
                f"Humidity: {observation.get('humidity')}",
                f"Precipitation Rate: {imperial.get('precipRate')}",
                f"Precipitation Total: {imperial.get('precipTotal')}",
            ]
        )
