"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Survey Route API"
    api_prefix: str = "/api"
    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
        description="Directions endpoint accepting origin/destination/waypoints query parameters.",
    )
    directions_api_key: Optional[str] = Field(
        default=None,
        description="API key sent as the `key` query parameter of directions requests.",
    )
    directions_mode: Literal["walking", "driving", "bicycling"] = Field(
        default="walking",
        description="Travel mode requested from the directions service.",
    )
    directions_timeout_seconds: float = Field(
        default=20.0,
        ge=1.0,
        le=120.0,
        description="Upper bound for a single directions request before falling back to the local solver.",
    )
    directions_max_retries: int = Field(default=1, ge=0)
    directions_backoff_seconds: float = Field(default=0.5, ge=0.0)
    location_service_url: Optional[str] = Field(
        default=None,
        description="Base URL of the location service exposing /api/locations/:id.",
    )
    location_timeout_seconds: float = Field(default=15.0, ge=1.0)
    walking_speed_kmh: float = Field(
        default=5.0,
        gt=0.0,
        description="Average speed used to estimate durations when only straight-line distances are known.",
    )
    coordinator_max_workers: int = Field(default=4, ge=1)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
