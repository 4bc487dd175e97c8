"""Application configuration and settings management."""

from datetime import time
from pathlib import Path
from typing import Any, Optional

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

    app_name: str = "Field Route Timing API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for data files and outputs.")
    business_data_file: Path = Field(
        default=Path("data/business.json"),
        description="JSON dataset with contacts, job tickets, suppliers and the home address.",
    )
    home_address: Optional[str] = Field(
        default=None,
        description="Home base address. Overrides the address stored in the business dataset.",
    )
    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
        description="Directions endpoint used to resolve legs between addresses.",
    )
    directions_api_key: Optional[str] = Field(default=None, description="API key for the directions provider.")
    directions_timeout_seconds: float = Field(default=15.0, gt=0.0)
    directions_max_retries: int = Field(default=2, ge=0)
    directions_backoff_seconds: float = Field(default=0.5, ge=0.0)

    default_departure_time: time = Field(
        default=time(8, 0),
        description="Assumed departure from home when no leave-by time could be computed.",
    )
    default_job_service_minutes: int = Field(default=60, ge=0)
    supplier_service_minutes: int = Field(default=30, ge=0)
    place_service_minutes: int = Field(default=30, ge=0)
    routable_statuses: tuple[str, ...] = Field(
        default=("Scheduled", "Estimate Scheduled", "In Progress", "Supplier Run"),
        description="Job statuses that warrant a physical visit on their effective date.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
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

    @field_validator("data_root", "business_data_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "routable_statuses", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
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
