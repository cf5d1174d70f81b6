"""External services consulted by the conversation loop."""

from dronepilot.services.weather import (
    WEATHER_UNAVAILABLE,
    WEATHER_UNCONFIGURED,
    WeatherError,
    WeatherService,
)

__all__ = ["WEATHER_UNAVAILABLE", "WEATHER_UNCONFIGURED", "WeatherError", "WeatherService"]
