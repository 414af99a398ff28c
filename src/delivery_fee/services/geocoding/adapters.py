"""Map Google and Nominatim payloads into provider-neutral domain objects.

Each provider gets its own explicit adapter; nothing downstream inspects raw
provider fields.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...errors import InvalidCoordinates, ProviderResponseError
from ...models.domain import AddressResult, GeoPoint, PlaceSuggestion, ProviderName
from ..location import normalize

# Google address component type -> AddressResult field
_GOOGLE_COMPONENTS = {
    "street_number": "street_number",
    "route": "route",
    "locality": "city",
    "postal_town": "city",
    "administrative_area_level_1": "state",
    "country": "country",
    "postal_code": "postal_code",
}

_NOMINATIM_CITY_KEYS = ("city", "town", "village", "municipality", "suburb")


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _point(provider: ProviderName, lat: Any, lng: Any) -> GeoPoint:
    try:
        return normalize({"lat": lat, "lng": lng})
    except InvalidCoordinates as exc:
        raise ProviderResponseError(provider.value, f"result has unusable coordinates: {exc.message}") from exc


def from_primary(result: Mapping[str, Any], fallback_point: GeoPoint | None = None) -> AddressResult:
    """Convert one Google geocode / place-details result."""

    location = (result.get("geometry") or {}).get("location") or {}
    if "lat" in location and "lng" in location:
        point = _point(ProviderName.GOOGLE, location["lat"], location["lng"])
    elif fallback_point is not None:
        point = fallback_point
    else:
        raise ProviderResponseError(ProviderName.GOOGLE.value, "result has no geometry.location")

    parts: dict[str, str] = {}
    for component in result.get("address_components") or ():
        target = next(
            (_GOOGLE_COMPONENTS[kind] for kind in component.get("types") or () if kind in _GOOGLE_COMPONENTS),
            None,
        )
        name = _clean(component.get("long_name"))
        if target and name and target not in parts:
            parts[target] = name

    street = " ".join(filter(None, (parts.get("street_number"), parts.get("route")))) or None
    return AddressResult(
        source_point=point,
        full_address=_clean(result.get("formatted_address")) or _clean(result.get("name")),
        street_address=street,
        city=parts.get("city"),
        state=parts.get("state"),
        country=parts.get("country"),
        postal_code=parts.get("postal_code"),
        provider=ProviderName.GOOGLE,
        place_ref=_clean(result.get("place_id")),
    )


def from_secondary(item: Mapping[str, Any]) -> AddressResult:
    """Convert one Nominatim search hit or reverse lookup."""

    if "lat" not in item or "lon" not in item:
        raise ProviderResponseError(ProviderName.NOMINATIM.value, "result has no lat/lon")
    point = _point(ProviderName.NOMINATIM, item["lat"], item["lon"])
    address = item.get("address") or {}
    street = " ".join(filter(None, (_clean(address.get("house_number")), _clean(address.get("road"))))) or None
    city = next((_clean(address[key]) for key in _NOMINATIM_CITY_KEYS if _clean(address.get(key))), None)
    return AddressResult(
        source_point=point,
        full_address=_clean(item.get("display_name")),
        street_address=street,
        city=city,
        state=_clean(address.get("state")),
        country=_clean(address.get("country")),
        postal_code=_clean(address.get("postcode")),
        provider=ProviderName.NOMINATIM,
        place_ref=_clean(item.get("place_id")),
    )


def suggestion_from_primary(prediction: Mapping[str, Any]) -> PlaceSuggestion:
    place_id = _clean(prediction.get("place_id"))
    if not place_id:
        raise ProviderResponseError(ProviderName.GOOGLE.value, "prediction has no place_id")
    formatting = prediction.get("structured_formatting") or {}
    return PlaceSuggestion(
        id=place_id,
        label=_clean(formatting.get("main_text")) or _clean(prediction.get("description")) or place_id,
        secondary_label=_clean(formatting.get("secondary_text")),
        provider=ProviderName.GOOGLE,
        provider_ref=place_id,
    )


def suggestion_from_secondary(item: Mapping[str, Any]) -> PlaceSuggestion:
    address = from_secondary(item)
    ref = address.place_ref or f"{address.source_point.latitude},{address.source_point.longitude}"
    label = address.full_address or ref
    head, _, tail = label.partition(",")
    return PlaceSuggestion(
        id=ref,
        label=head.strip(),
        secondary_label=tail.strip() or None,
        provider=ProviderName.NOMINATIM,
        provider_ref=ref,
        point=address.source_point,
        address=address,
    )
