"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="LOGISAFE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "LogiSafe Dispatch API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for the local document store.")

    # Directions provider (Google-compatible /directions/json)
    maps_base_url: Optional[str] = Field(
        default="https://maps.gomaps.pro/maps/api",
        description="Base URL of the directions provider.",
    )
    maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the directions provider. Without it every request uses the synthetic fallback.",
    )
    directions_travel_mode: Literal["driving", "walking", "bicycling", "transit"] = "driving"
    directions_timeout_seconds: float = Field(default=10.0, gt=0.0)
    directions_max_retries: int = Field(default=0, ge=0)
    directions_backoff_seconds: float = Field(default=0.5, ge=0.0)
    directions_max_parallel_requests: int = Field(default=4, ge=1)

    # Route simulation
    risk_area_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    risk_zone_radius_km: float = Field(default=25.0, ge=0.0)

    # Live risk feed
    risk_feed_enabled: bool = True
    risk_feed_capacity: int = Field(default=10, ge=1)
    risk_feed_interval_seconds: float = Field(default=10.0, gt=0.0)
    risk_feed_zone_probability: float = Field(default=0.3, ge=0.0, le=1.0)

    # Document collections
    orders_collection: str = "orders"
    assignments_collection: str = "driverAssignments"
    drivers_collection: str = "drivers"

    # Demo-mode session used when no identity headers are sent
    demo_mode: bool = False
    demo_role: Literal["admin", "driver"] = "admin"
    demo_driver_id: str = "D001"

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

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

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
