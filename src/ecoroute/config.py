"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ECOROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "EcoRoute Optimization API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level for the service.")

    tick_interval_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Interval between position updates of a tracked route.",
    )
    traffic_update_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Interval between traffic:updated pushes for subscribed routes.",
    )
    store_timeout_seconds: float = Field(
        default=3.0,
        gt=0.0,
        description="Upper bound on a single store call made while tracking.",
    )
    traffic_cache_ttl_seconds: float = Field(default=120.0, ge=0.0)
    weather_cache_ttl_seconds: float = Field(default=300.0, ge=0.0)
    cache_housekeeping_seconds: float = Field(
        default=600.0,
        gt=0.0,
        description="How often the simulator caches are cleared in the background.",
    )
    recalculation_threshold: float = Field(default=0.30, gt=0.0)
    default_previous_traffic: float = Field(
        default=0.2,
        gt=0.0,
        description="Traffic baseline used before a route has any traffic samples.",
    )
    default_truck_speed_kmh: float = Field(default=40.0, gt=0.0)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for the simulators' random source; unset means nondeterministic.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
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
