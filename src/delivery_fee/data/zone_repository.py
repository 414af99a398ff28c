"""Shipping zone loader: HTTP zone store first, Supabase tables otherwise."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional, Union

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import ZonesUnavailable
from ..models.domain import ShippingZone

logger = logging.getLogger(__name__)


class ShippingZoneRow(BaseModel):
    """One zone row as stored upstream, including optional per-branch overrides."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "name_en"))
    min_distance_km: float = Field(default=0.0, validation_alias=AliasChoices("min_distance_km", "min_distance"))
    max_distance_km: float = Field(validation_alias=AliasChoices("max_distance_km", "max_distance"))
    base_fee: float = Field(validation_alias=AliasChoices("base_fee", "base_price", "fee"))
    free_shipping_threshold: Optional[float] = None
    is_default: bool = False
    is_active: bool = True
    sort_order: int = 0
    custom_base_price: Optional[float] = None
    custom_free_threshold: Optional[float] = None

    @field_validator("free_shipping_threshold", "custom_free_threshold", "custom_base_price", mode="before")
    @classmethod
    def _blank_or_zero_is_unset(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        if float(value) <= 0:
            return None
        return value

    @field_validator("is_default", "is_active", mode="before")
    @classmethod
    def _int_flags(cls, value: Any) -> Any:
        return bool(int(value)) if isinstance(value, (int, str)) and str(value).isdigit() else value

    def to_domain(self) -> ShippingZone:
        return ShippingZone(
            id=str(self.id),
            name=self.name or f"Zone {self.id}",
            min_distance_km=self.min_distance_km,
            max_distance_km=self.max_distance_km,
            base_fee=self.custom_base_price if self.custom_base_price is not None else self.base_fee,
            free_shipping_threshold=(
                self.custom_free_threshold if self.custom_free_threshold is not None else self.free_shipping_threshold
            ),
            is_default=self.is_default,
            sort_order=self.sort_order,
        )


def parse_zone_rows(rows: Iterable[dict[str, Any]]) -> list[ShippingZone]:
    """Validate upstream rows; inactive and malformed rows are skipped with a warning."""
    zones: list[ShippingZone] = []
    for row in rows:
        try:
            parsed = ShippingZoneRow.model_validate(row)
            if not parsed.is_active:
                continue
            zones.append(parsed.to_domain())
        except (ValidationError, ValueError) as e:
            row_id = row.get("id") if isinstance(row, dict) else row
            logger.warning(f"Skipping invalid shipping zone row {row_id!r}: {e}")
    zones.sort(key=lambda zone: zone.sort_order)
    return zones


def _load_zone_rows_from_database(branch_id: str) -> list[dict[str, Any]] | None:
    """Active zones with this branch's overrides merged in. None if Supabase is not configured."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    zones = supabase.table("shipping_zones").select("*").eq("is_active", True).order("sort_order").execute()
    overrides = (
        supabase.table("branch_shipping_zones")
        .select("zone_id, custom_base_price, custom_free_threshold")
        .eq("branch_id", branch_id)
        .eq("is_active", True)
        .execute()
    )
    by_zone = {str(row["zone_id"]): row for row in overrides.data or []}
    rows: list[dict[str, Any]] = []
    for row in zones.data or []:
        override = by_zone.get(str(row.get("id")), {})
        rows.append(
            {
                **row,
                "custom_base_price": override.get("custom_base_price"),
                "custom_free_threshold": override.get("custom_free_threshold"),
            }
        )
    return rows


async def _fetch_zone_rows_over_http(
    branch_id: str, base_url: str, client: httpx.AsyncClient | None = None
) -> list[dict[str, Any]]:
    url = f"{base_url.rstrip('/')}/branches/{branch_id}/zones"
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.zone_store_timeout_seconds)
    try:
        response = await http.get(url)
        response.raise_for_status()
        payload = response.json()
    finally:
        if owns_client:
            await http.aclose()

    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("zones"))
    if not isinstance(payload, list):
        raise ValueError(f"Zone store returned an unexpected payload for branch {branch_id}")
    return payload


async def fetch_zones(branch_id: str, *, client: httpx.AsyncClient | None = None) -> list[ShippingZone]:
    """Zones for ``branch_id`` in store order. Raises ZonesUnavailable on any failure."""
    try:
        if settings.zone_store_url:
            rows = await _fetch_zone_rows_over_http(branch_id, settings.zone_store_url, client)
        else:
            rows = await asyncio.to_thread(_load_zone_rows_from_database, branch_id)
            if rows is None:
                raise ZonesUnavailable("no zone store configured")
        return parse_zone_rows(rows)
    except ZonesUnavailable:
        raise
    except Exception as e:
        raise ZonesUnavailable(f"could not load zones for branch {branch_id}: {e}") from e
