"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DRS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Route Optimization API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied at startup.")
    data_root: Path = Field(default=Path("data"), description="Root directory for static data files.")
    orders_file: Path = Field(
        default=Path("data/orders.csv"),
        description="Orders export used when Supabase is not configured.",
    )
    default_statuses: tuple[str, ...] = Field(
        default=("pending",),
        description="Order statuses eligible for routing when the request does not name any.",
    )
    default_service_minutes: float = Field(default=5.0, ge=0.0)
    default_avg_speed_kmh: float = Field(default=30.0, gt=0.0)
    default_round_trip: bool = True
    default_strategy: Literal["2opt", "nearest"] = "2opt"
    two_opt_max_passes: int = Field(default=1000, ge=1)
    two_opt_epsilon: float = Field(default=1e-9, ge=0.0)
    two_opt_time_limit_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Optional wall-clock budget for the 2-opt improver. Unset keeps results deterministic.",
    )
    default_driver_key: str = "driver"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
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
    orders_table: str = "orders"
    active_routes_table: str = "active_routes"

    @field_validator("data_root", "orders_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "default_statuses", mode="before")
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
