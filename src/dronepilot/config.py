"""
Configuration management for the dronepilot operator console.

This module provides a Settings class that loads configuration from
environment variables, an optional ``.env`` file and an optional
``dronepilot.toml`` in the data directory, so the drone endpoint, model and
weather credentials can change without code changes.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

DATA_DIR_ENV = "DRONEPILOT_DATA_DIR"
TOML_FILENAME = "dronepilot.toml"

DEFAULT_SYSTEM_PROMPT = """You are controlling a drone. I want it to simply roam around the environment.

You may stack multiple changes at once, however keep execution order in mind. Only one will be executed at once.

For each movement change, you will receive a photo of your current position, as well as position information.

Provide a one-sentence reasoning for the given command(s).

You will always start in an idle state, you must take off before you can move the drone.

Try to turn the drone and using forward, rather than just banking in a given direction. It gives you more of an idea of what is around you.

The drone is a DJI Mini SE, which is quite small and gives you room for movement.

Be careful to avoid obstacles, such as trees and buildings.

Always check weather information before taking off to ensure safe conditions. It will be included in the first user message, no need to request it."""


def toml_config_path() -> Path:
    """Return the location of the optional TOML settings file."""
    return Path(os.environ.get(DATA_DIR_ENV, ".")) / TOML_FILENAME


class Settings(BaseSettings):
    """Application settings loaded once at startup."""

    # Completion service
    openai_api_key: str | None = None  # None = let the SDK read OPENAI_API_KEY
    openai_base_url: str | None = None
    model: str = "gpt-4o-mini"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Drone control server
    drone_ip_port: str = "127.0.0.1:8080"
    drone_timeout: float = 30.0
    max_speed: float = 1.0  # m/s
    landing_protection: bool = False

    # Weather station (Weather Underground PWS)
    weather_api_key: str = ""
    weather_station_id: str = ""
    weather_timeout: float = 10.0

    # Snapshot capture
    snapshot_settle_seconds: float = 1.2

    # Operator console
    approval_token: str = "y"

    # Logging
    log_level: str = "INFO"

    @field_validator("approval_token")
    @classmethod
    def validate_approval_token(cls, v: str) -> str:
        """Operators type the token verbatim, so it cannot be blank or padded."""
        if not v or v != v.strip():
            raise ValueError("approval_token must be non-blank with no surrounding whitespace")
        return v

    model_config = SettingsConfigDict(
        env_prefix="DRONEPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over .env, which wins over the TOML file.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_config_path()),
            file_secret_settings,
        )

    @property
    def drone_base_url(self) -> str:
        """Base URL of the drone control server."""
        if self.drone_ip_port.startswith(("http://", "https://")):
            return self.drone_ip_port.rstrip("/")
        return f"http://{self.drone_ip_port}"


def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
