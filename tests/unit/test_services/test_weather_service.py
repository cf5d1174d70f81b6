"""Unit tests for dronepilot.services.weather.WeatherService."""

from __future__ import annotations

import httpx
import pytest

from dronepilot.services import (
    WEATHER_UNAVAILABLE,
    WEATHER_UNCONFIGURED,
    WeatherError,
    WeatherService,
)

_OBSERVATION = {
    "stationID": "KTEST1",
    "obsTimeUtc": "2026-10-19T15:20:00Z",
    "winddir": 225,
    "humidity": 61.0,
    "imperial": {
        "windSpeed": 4.2,
        "windGust": 7.1,
        "precipRate": 0.0,
        "precipTotal": 0.02,
    },
}


def _make_service(handler, api_key: str = "key", station_id: str = "KTEST1") -> WeatherService:
    return WeatherService(
        api_key=api_key, station_id=station_id, transport=httpx.MockTransport(handler)
    )


@pytest.mark.anyio
async def test_unconfigured_skips_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    service = _make_service(handler, api_key="", station_id="KTEST1")

    assert service.configured is False
    assert await service.get_briefing() == WEATHER_UNCONFIGURED


@pytest.mark.anyio
async def test_briefing_format() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"observations": [_OBSERVATION]})

    briefing = await _make_service(handler).get_briefing()

    assert briefing.splitlines() == [
        "Time Observed (UTC): 2026-10-19T15:20:00Z",
        "Wind Direction: 225",
        "Wind Speed (MPH): 4.2",
        "Wind Gust (MPH): 7.1",
        "Humidity: 61.0",
        "Precipitation Rate: 0.0",
        "Precipitation Total: 0.02",
    ]
    params = seen[0].url.params
    assert params["stationId"] == "KTEST1"
    assert params["apiKey"] == "key"
    assert params["units"] == "e"


@pytest.mark.anyio
async def test_empty_body_is_unavailable() -> None:
    service = _make_service(lambda request: httpx.Response(204))
    assert await service.get_briefing() == WEATHER_UNAVAILABLE


@pytest.mark.anyio
async def test_no_observations_is_unavailable() -> None:
    service = _make_service(lambda request: httpx.Response(200, json={"observations": []}))
    assert await service.get_briefing() == WEATHER_UNAVAILABLE


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [
        {"observations": {"x": 1}},
        {"observations": "offline"},
        {"observations": ["offline"]},
        {"observations": [None]},
        ["observations"],
    ],
)
async def test_malformed_observations_are_unavailable(body) -> None:
    service = _make_service(lambda request: httpx.Response(200, json=body))
    assert await service.get_briefing() == WEATHER_UNAVAILABLE


@pytest.mark.anyio
async def test_malformed_imperial_block_still_formats() -> None:
    observation = dict(_OBSERVATION, imperial="n/a")
    service = _make_service(
        lambda request: httpx.Response(200, json={"observations": [observation]})
    )

    briefing = await service.get_briefing()

    assert "Humidity: 61.0" in briefing
    assert "Wind Speed (MPH): None" in briefing


@pytest.mark.anyio
async def test_non_json_is_unavailable() -> None:
    service = _make_service(lambda request: httpx.Response(200, text="maintenance"))
    assert await service.get_briefing() == WEATHER_UNAVAILABLE


@pytest.mark.anyio
async def test_http_error_raises_weather_error() -> None:
    service = _make_service(lambda request: httpx.Response(401))
    with pytest.raises(WeatherError, match="401"):
        await service.get_briefing()


@pytest.mark.anyio
async def test_connection_error_raises_weather_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(WeatherError, match="unreachable"):
        await _make_service(handler).get_briefing()
