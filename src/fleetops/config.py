"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETOPS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Fleet Operations Routing API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for exported run artifacts.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ),
        description="Permitted web origins for the dashboard (CORS).",
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

    # Duplicate address detection
    duplicate_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    duplicate_medium_confidence: float = Field(default=0.90, ge=0.0, le=1.0)
    duplicate_high_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    addresses_table: str = Field(default="viagens", description="Table holding previously imported addresses.")
    address_column: str = Field(default="endereco")
    duplicate_preview_limit: int = Field(default=10, ge=1)

    # Route builder
    cluster_max_distance_km: float = Field(default=1.0, gt=0.0)
    cluster_max_stops: int = Field(default=4, ge=1)
    cluster_adjacency_window: int = Field(
        default=3,
        ge=0,
        description="List-position window used to group stops that have no coordinates.",
    )
    max_route_duration_minutes: int = Field(default=120, ge=1)
    average_speed_kmh: float = Field(default=60.0, gt=0.0)

    # Route sharing
    share_base_url: str = Field(default="http://localhost:5173")
    share_max_resends: int = Field(default=3, ge=0)
    qr_code_service_url: str = Field(default="https://api.qrserver.com/v1/create-qr-code/")

    # Spreadsheet imports
    import_sheet_names: tuple[str, ...] = Field(default=("1° Turno", "2° Turno", "3° Turno"))

    # Weather panel
    weather_api_url: str = Field(default="https://api.open-meteo.com/v1/forecast")
    weather_cache_seconds: int = Field(default=600, ge=0)
    weather_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "import_sheet_names", mode="before")
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
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("duplicate_high_confidence")
    @classmethod
    def _check_confidence_order(cls, value: float, info) -> float:
        medium = info.data.get("duplicate_medium_confidence")
        if medium is not None and value < medium:
            raise ValueError("duplicate_high_confidence must be >= duplicate_medium_confidence")
        return value


settings = Settings()
