"""
dronepilot - Main Entry Point.

This module wires the configured collaborators together, prepares the drone
and runs the conversation driver until the operator stops the process.

Architecture:
    - config.py: Configuration management
    - console.py: Operator prompts and echo
    - adapters/drone: Drone control server client
    - services/weather.py: Weather station briefing
    - conversation/: Snapshot, catalog, approval gate and driver
    - main.py: Orchestration and entry point
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from pydantic import ValidationError

from dronepilot.adapters.drone import DroneClient, DroneError
from dronepilot.config import Settings, get_settings
from dronepilot.console import OperatorConsole
from dronepilot.conversation.approval import ConsoleApprovalGate
from dronepilot.conversation.loop import ConversationDriver
from dronepilot.conversation.providers import ResponsesProvider
from dronepilot.conversation.snapshot import SituationSnapshotBuilder
from dronepilot.conversation.tools import DEFAULT_CATALOG, DroneActionExecutor, UnknownActionError
from dronepilot.services.weather import WeatherService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DRONE_UNAVAILABLE = 1
EXIT_CONTRACT_VIOLATION = 2
EXIT_BAD_CONFIG = 3


async def prepare_drone(drone: DroneClient, settings: Settings) -> None:
    """Apply the flight limits the session relies on."""
    await drone.set_landing_protection(settings.landing_protection)
    await drone.set_max_speed(settings.max_speed)
    logger.info(
        "Drone prepared: landing_protection=%s max_speed=%.1f m/s",
        settings.landing_protection,
        settings.max_speed,
    )


def build_driver(
    settings: Settings,
    drone: DroneClient,
    console: OperatorConsole,
    provider: ResponsesProvider | None = None,
) -> ConversationDriver:
    """Assemble a ``ConversationDriver`` from *settings*."""
    weather = WeatherService(
        api_key=settings.weather_api_key,
        station_id=settings.weather_station_id,
        timeout=settings.weather_timeout,
    )
    if provider is None:
        provider = ResponsesProvider(
            model=settings.model,
            instructions=settings.system_prompt,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    return ConversationDriver(
        completion=provider,
        catalog=DEFAULT_CATALOG,
        snapshots=SituationSnapshotBuilder(
            drone, weather, settle_seconds=settings.snapshot_settle_seconds
        ),
        approval=ConsoleApprovalGate(console.ask, affirmative=settings.approval_token),
        executor=DroneActionExecutor(drone, weather),
        operator=console,
    )


async def main(settings: Settings) -> None:
    """Run the operator session.

    Handles:
    1. Connecting to the drone control server
    2. Applying flight limits
    3. Running the driver until interrupted

    Args:
        settings: Loaded application settings.
    """
    console = OperatorConsole()
    async with DroneClient(settings.drone_base_url, timeout=settings.drone_timeout) as drone:
        await prepare_drone(drone, settings)
        driver = build_driver(settings, drone, console)
        logger.info("Using model %s against drone %s", settings.model, settings.drone_base_url)
        await driver.run()


def run(argv: list[str] | None = None) -> int:
    """Console script entry point."""
    parser = argparse.ArgumentParser(
        prog="dronepilot",
        description="Let a language model fly a drone, one approved action at a time.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    try:
        settings = get_settings()
    except ValidationError as exc:
        logging.basicConfig(format=log_format)
        logger.critical("Invalid configuration: %s", exc)
        return EXIT_BAD_CONFIG
    logging.basicConfig(
        level="DEBUG" if args.debug else settings.log_level,
        format=log_format,
    )

    try:
        asyncio.run(main(settings))
    except (KeyboardInterrupt, EOFError):
        logger.info("Operator stopped the session")
    except UnknownActionError as exc:
        logger.critical("Tool catalog and model disagree: %s", exc)
        return EXIT_CONTRACT_VIOLATION
    except DroneError as exc:
        logger.error("Could not prepare the drone: %s", exc)
        return EXIT_DRONE_UNAVAILABLE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(run())
