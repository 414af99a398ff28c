"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DFEE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Fee Resolution API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for static data and outputs.")
    branches_file: Path = Field(
        default=Path("data/branches.xlsx"),
        description="Branch locations workbook with Branch/Latitude/Longitude columns.",
    )

    # Primary mapping provider (Google Maps web services)
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API key. When missing, every lookup is routed to Nominatim.",
    )
    google_maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    google_maps_region: Optional[str] = Field(default="jo", description="Region/country bias for Google lookups.")
    google_maps_language: str = Field(default="en")

    # Secondary keyless provider (OpenStreetMap Nominatim)
    nominatim_base_url: str = Field(default="https://nominatim.openstreetmap.org")
    nominatim_user_agent: str = Field(
        default="delivery-fee-service/1.0",
        description="Nominatim usage policy requires an identifying User-Agent.",
    )
    nominatim_country_codes: tuple[str, ...] = Field(default=("jo",))
    nominatim_language: str = Field(default="en")

    provider_timeout_seconds: float = Field(default=8.0, gt=0.0)
    suggestion_debounce_ms: int = Field(default=250, ge=0)
    suggestion_limit: int = Field(default=5, ge=1)

    # Zone configuration store
    zone_store_url: Optional[str] = Field(
        default=None,
        description="Base URL of the HTTP zone store (GET {url}/branches/{id}/zones). Falls back to Supabase.",
    )
    zone_store_timeout_seconds: float = Field(default=5.0, gt=0.0)

    # Pricing
    default_branch_latitude: float = Field(default=31.9454, ge=-90.0, le=90.0)
    default_branch_longitude: float = Field(default=35.9284, ge=-180.0, le=180.0)
    static_default_fee: float = Field(default=5.00, ge=0.0)
    max_delivery_distance_km: float = Field(default=100.0, gt=0.0)
    service_area_bounds: tuple[float, ...] = Field(
        default=(29.0, 34.0, 33.5, 39.5),
        description="Service area bounding box as (south, west, north, east).",
    )
    audit_calculations: bool = Field(default=True, description="Append every fee calculation to the audit log.")

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
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

    @property
    def primary_provider_configured(self) -> bool:
        return bool(self.google_maps_api_key and self.google_maps_api_key.strip())

    @field_validator("data_root", "branches_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "nominatim_country_codes", mode="before")
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

    @field_validator("service_area_bounds", mode="before")
    @classmethod
    def _parse_bounds_from_env(cls, value: Any) -> tuple[float, ...]:
        """Parse the bounding box from a JSON array or comma-separated string."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        bounds = tuple(float(item) for item in value)
        if len(bounds) != 4:
            raise ValueError("service_area_bounds needs exactly four values: south, west, north, east")
        south, west, north, east = bounds
        if south >= north or west >= east:
            raise ValueError("service_area_bounds must satisfy south < north and west < east")
        return bounds


settings = Settings()
