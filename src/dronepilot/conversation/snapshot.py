"""
Situation snapshots for the dronepilot conversation loop.

A snapshot is the point-in-time picture of the drone that opens every fresh
turn: a camera frame, altitude, heading and, once per session, the weather
briefing.  ``SituationSnapshotBuilder`` gathers it; ``SituationSnapshot``
renders it as a Responses API user message.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any

from dronepilot.adapters.drone.client import DroneClient, DroneError
from dronepilot.conversation.session import SessionState
from dronepilot.services.weather import WeatherService

logger = logging.getLogger(__name__)

DEFAULT_ALTITUDE = 0.0


class SnapshotError(Exception):
    """Raised when the camera frame cannot be captured or decoded."""


@dataclass(frozen=True)
class SituationSnapshot:
    """Point-in-time description of the drone.

    Attributes:
        image: PNG bytes of the latest frame, or ``None`` if none was available.
        altitude: Altitude in meters (``DEFAULT_ALTITUDE`` when unavailable).
        heading: Compass heading in degrees.
        briefing: Weather briefing, present only on a session's first snapshot.
    """

    image: bytes | None
    altitude: float
    heading: float
    briefing: str | None = None

    def text(self) -> str:
        text = f"Altitude: {self.altitude}\nHeading: {self.heading}"
        if self.briefing is not None:
            text += f"\n\nWeather Info:\n{self.briefing}"
        return text

    def to_input_item(self) -> dict[str, Any]:
        """Render as a user message with a text part and an optional image part."""
        content: list[dict[str, Any]] = [{"type": "input_text", "text": self.text()}]
        if self.image:
            encoded = base64.b64encode(self.image).decode("ascii")
            content.append(
                {"type": "input_image", "image_url": f"data:image/png;base64,{encoded}"}
            )
        return {"role": "user", "content": content}


class SituationSnapshotBuilder:
    """Builds snapshots from the drone and the weather station.

    Attributes:
        drone: The drone client used for capture and telemetry.
        weather: The weather service consulted on a session's first snapshot.
        settle_seconds: Delay between triggering a capture and fetching the
            preview, so the frame is not stale or mid-write.
    """

    def __init__(
        self,
        drone: DroneClient,
        weather: WeatherService,
        settle_seconds: float = 1.2,
    ) -> None:
        self.drone = drone
        self.weather = weather
        self.settle_seconds = settle_seconds

    async def build(self, session: SessionState) -> SituationSnapshot:
        """Capture a fresh snapshot for *session*.

        The weather briefing is attached only while
        ``session.briefing_delivered`` is ``False``; the flag is set once the
        snapshot has been fully built.

        Raises:
            SnapshotError: If the frame cannot be captured or decoded.
            DroneError: If the heading cannot be read.
            WeatherError: If the briefing lookup fails in transport.
        """
        image = await self._capture_image()
        altitude = await self._read_altitude()
        heading = await self.drone.get_heading()

        briefing: str | None = None
        if not session.briefing_delivered:
            briefing = await self.weather.get_briefing()

        snapshot = SituationSnapshot(
            image=image, altitude=altitude, heading=heading, briefing=briefing
        )
        if briefing is not None:
            session.briefing_delivered = True
        logger.info(
            "Snapshot built: session=%s altitude=%s heading=%s image=%s briefing=%s",
            session.session_id,
            altitude,
            heading,
            f"{len(image)}B" if image else "none",
            briefing is not None,
        )
        return snapshot

    async def _capture_image(self) -> bytes | None:
        try:
            await self.drone.capture_shot()
            await asyncio.sleep(self.settle_seconds)
            encoded = await self.drone.get_media_preview(0)
        except DroneError as exc:
            raise SnapshotError(f"Could not capture an image: {exc}") from exc
        if not encoded:
            logger.warning("Drone returned an empty preview; continuing without an image")
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SnapshotError("Drone preview is not valid base64") from exc

    async def _read_altitude(self) -> float:
        try:
            return await self.drone.get_altitude()
        except DroneError as exc:
            logger.warning("Altitude unavailable (%s); using %.1f", exc, DEFAULT_ALTITUDE)
            return DEFAULT_ALTITUDE
