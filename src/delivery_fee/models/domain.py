"""Domain models for locations, zones and fee results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..errors import InvalidCoordinates


class ProviderName(str, Enum):
    GOOGLE = "google"
    NOMINATIM = "nominatim"


class CalculationMethod(str, Enum):
    """Degradation tier that produced a fee."""

    DISTANCE_ZONE_MATCH = "distance_zone_match"
    DISTANCE_FALLBACK_TABLE = "distance_fallback_table"
    ZONE_FALLBACK = "zone_fallback"
    STATIC_DEFAULT = "static_default"

    @property
    def is_estimate(self) -> bool:
        return self in (CalculationMethod.ZONE_FALLBACK, CalculationMethod.STATIC_DEFAULT)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Validated latitude/longitude pair."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, bound in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinates(f"{name} must be a number, got {type(value).__name__}")
            if math.isnan(value) or not -bound <= value <= bound:
                raise InvalidCoordinates(f"{name} {value!r} is outside [-{bound}, {bound}]")

    @property
    def key(self) -> tuple[float, float]:
        return (float(self.latitude), float(self.longitude))

    def as_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class AddressResult:
    """Provider-neutral geocoding result. Text fields may be missing, the point never is."""

    source_point: GeoPoint
    full_address: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    provider: Optional[ProviderName] = None
    place_ref: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PlaceSuggestion:
    id: str
    label: str
    provider: ProviderName
    provider_ref: str
    secondary_label: Optional[str] = None
    # Nominatim search hits already carry coordinates.
    point: Optional[GeoPoint] = None
    address: Optional[AddressResult] = None


@dataclass(frozen=True, slots=True)
class ResolvedPlace:
    point: GeoPoint
    address: AddressResult


@dataclass(frozen=True, slots=True)
class ShippingZone:
    """A distance band with its base delivery fee."""

    id: str
    name: str
    min_distance_km: float
    max_distance_km: float
    base_fee: float
    free_shipping_threshold: Optional[float] = None
    is_default: bool = False
    sort_order: int = 0

    def __post_init__(self) -> None:
        if not self.min_distance_km < self.max_distance_km:
            raise ValueError(
                f"Zone {self.id!r}: min_distance_km ({self.min_distance_km}) must be lower than "
                f"max_distance_km ({self.max_distance_km})"
            )

    def contains(self, distance_km: float) -> bool:
        return self.min_distance_km <= distance_km <= self.max_distance_km


@dataclass(frozen=True, slots=True)
class Branch:
    """Fulfillment branch with coordinates."""

    id: str
    name: str
    latitude: float
    longitude: float

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class DistanceResult:
    distance_km: float
    duration_minutes: int
    distance_text: Optional[str] = None
    duration_text: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FeeBreakdown:
    base_fee: float
    surcharge: float
    final_fee: float
    free_shipping_applied: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class DeliveryFeeResult:
    """Authoritative outcome of one fee resolution, including how it was obtained."""

    base_fee: float
    surcharge: float
    final_fee: float
    free_shipping_applied: bool
    calculation_method: CalculationMethod
    distance_km: Optional[float] = None
    duration_minutes: Optional[int] = None
    matched_zone: Optional[ShippingZone] = None
    computed_at: datetime = field(default_factory=_utcnow)
    branch_id: Optional[str] = None
    customer_point: Optional[GeoPoint] = None
    branch_point: Optional[GeoPoint] = None
    within_service_area: Optional[bool] = None
    manual_entry_required: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def is_estimate(self) -> bool:
        return self.calculation_method.is_estimate
