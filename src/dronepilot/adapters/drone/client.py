"""
HTTP client for the drone control server.

The control server runs next to the remote controller and exposes every
device primitive as a ``GET`` endpoint under ``http://<ip:port>/``. Each
endpoint replies with a JSON object::

    {"success": true, "result": <value>}
    {"success": false, "error": "<reason>"}

``DroneClient`` turns a ``success: false`` reply into ``DroneCommandError``
(the device refused or failed the command) and any network, HTTP status or
decoding problem into ``DroneTransportError``.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Literal

import httpx

logger = logging.getLogger(__name__)

MoveDirection = Literal["forward", "backward", "left", "right", "up", "down"]
TurnDirection = Literal["clockwise", "counterclockwise"]


# ---------------------------------------------------------------------------
# Custom exception hierarchy
# ---------------------------------------------------------------------------


class DroneError(Exception):
    """Base exception for all drone client errors."""


class DroneTransportError(DroneError):
    """Raised when the control server cannot be reached or replies garbage."""


class DroneCommandError(DroneError):
    """Raised when the device reports a command failure.

    Attributes:
        endpoint: The endpoint that failed.
        reason: The failure reason reported by the device.
    """

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"{endpoint} failed: {reason}")
        self.endpoint = endpoint
        self.reason = reason


def _fmt(value: float) -> str:
    return f"{value:g}"


class DroneClient:
    """Async client for a single drone.

    Only one command is ever in flight; callers await each call before
    issuing the next.

    Attributes:
        base_url: Control server base URL, e.g. ``http://192.168.1.20:8080``.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> DroneClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Flight commands
    # ------------------------------------------------------------------

    async def take_off(self) -> None:
        await self._request("takeOff")

    async def land(self) -> None:
        await self._request("land")

    async def move(self, direction: MoveDirection, meters: float) -> None:
        await self._request(f"move/{direction}/{_fmt(meters)}")

    async def rotate(self, direction: TurnDirection, degrees: float) -> None:
        await self._request(f"rotate/{direction}/{_fmt(degrees)}")

    async def set_camera_pitch(self, degrees: float) -> None:
        await self._request(f"setCameraPitch/{_fmt(degrees)}")

    async def set_max_speed(self, meters_per_second: float) -> None:
        await self._request(f"setMaxSpeed/{_fmt(meters_per_second)}")

    async def set_landing_protection(self, enabled: bool) -> None:
        await self._request(f"setLandingProtection/{'true' if enabled else 'false'}")

    # ------------------------------------------------------------------
    # Camera and telemetry
    # ------------------------------------------------------------------

    async def capture_shot(self) -> None:
        await self._request("captureShot")

    async def get_media_preview(self, index: int = 0) -> str:
        """Return the base64-encoded preview of the *index*-th newest photo."""
        result = await self._request(f"mediaPreview/{index}")
        return result if isinstance(result, str) else ""

    async def get_altitude(self) -> float:
        return self._as_float("altitude", await self._request("altitude"))

    async def get_heading(self) -> float:
        return self._as_float("heading", await self._request("heading"))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _request(self, endpoint: str) -> Any:
        logger.debug("Drone request: %s", endpoint)
        try:
            response = await self._client.get(f"/{endpoint}")
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Drone control server HTTP error on %s: %s", endpoint, exc)
            raise DroneTransportError(
                f"{endpoint}: control server returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Drone control server unreachable on %s: %s", endpoint, exc)
            raise DroneTransportError(f"{endpoint}: {exc}") from exc
        except ValueError as exc:
            raise DroneTransportError(f"{endpoint}: reply is not valid JSON") from exc

        if not isinstance(payload, dict):
            raise DroneTransportError(f"{endpoint}: reply is not a JSON object")
        if not payload.get("success", False):
            reason = payload.get("error") or "unknown error"
            logger.warning("Drone command %s failed: %s", endpoint, reason)
            raise DroneCommandError(endpoint, str(reason))
        return payload.get("result")

    @staticmethod
    def _as_float(endpoint: str, value: Any) -> float:
        if isinstance(value, bool):
            raise DroneTransportError(f"{endpoint}: expected a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise DroneTransportError(f"{endpoint}: expected a number, got {value!r}") from exc
