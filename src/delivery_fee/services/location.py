"""Coerce raw coordinate-like input into a validated GeoPoint."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from ..errors import InvalidCoordinates
from ..models.domain import GeoPoint

_LATITUDE_KEYS = ("lat", "latitude")
_LONGITUDE_KEYS = ("lng", "lon", "longitude")


def _pick(mapping: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    raise InvalidCoordinates(f"missing field, expected one of {', '.join(keys)}")


def _coerce(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidCoordinates(f"{name} must be numeric, got a boolean")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidCoordinates(f"{name} is empty")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinates(f"{name} {value!r} is not a number") from exc
    if math.isnan(number) or math.isinf(number):
        raise InvalidCoordinates(f"{name} must be a finite number")
    return number


def normalize(value: Any) -> GeoPoint:
    """Return a GeoPoint for a mapping, (lat, lng) pair, "lat,lng" string or GeoPoint.

    Raises InvalidCoordinates for anything missing, non-numeric, NaN or out of range.
    """

    if isinstance(value, GeoPoint):
        return value
    if value is None:
        raise InvalidCoordinates("no coordinates supplied")

    if isinstance(value, Mapping):
        raw_lat, raw_lng = _pick(value, _LATITUDE_KEYS), _pick(value, _LONGITUDE_KEYS)
    elif isinstance(value, str):
        parts = value.replace(";", ",").split(",")
        if len(parts) != 2:
            raise InvalidCoordinates(f"expected 'lat,lng', got {value!r}")
        raw_lat, raw_lng = parts
    elif isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        if len(value) != 2:
            raise InvalidCoordinates(f"expected a (lat, lng) pair, got {len(value)} values")
        raw_lat, raw_lng = value
    else:
        raw_lat = getattr(value, "latitude", None)
        raw_lng = getattr(value, "longitude", None)
        if raw_lat is None or raw_lng is None:
            raise InvalidCoordinates(f"unsupported coordinate input of type {type(value).__name__}")

    latitude = _coerce(raw_lat, "latitude")
    longitude = _coerce(raw_lng, "longitude")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinates(f"latitude {latitude} is outside [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinates(f"longitude {longitude} is outside [-180, 180]")
    return GeoPoint(latitude, longitude)


def try_normalize(value: Any) -> GeoPoint | None:
    """Like normalize() but returns None instead of raising."""

    try:
        return normalize(value)
    except InvalidCoordinates:
        return None
