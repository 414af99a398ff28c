"""Google Maps web service client (geocoding, places, distance matrix)."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

import httpx

from ...config import settings
from ...errors import ProviderNotConfigured, ProviderResponseError
from ...models.domain import AddressResult, DistanceResult, GeoPoint, PlaceSuggestion, ProviderName
from .adapters import from_primary, suggestion_from_primary
from .base import GeocodingProvider, HttpProviderClient


PLACE_DETAIL_FIELDS = "place_id,geometry,name,formatted_address,address_components"


class GoogleMapsClient(HttpProviderClient, GeocodingProvider):
    name = ProviderName.GOOGLE

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        region: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(base_url or settings.google_maps_base_url, timeout=timeout, client=client)
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.region = region if region is not None else settings.google_maps_region
        self.language = language or settings.google_maps_language

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def _call(self, path: str, params: Mapping[str, Any]) -> dict:
        if not self.configured:
            raise ProviderNotConfigured(self.name.value, "Google Maps API key is not configured")
        payload = await self._get_json(path, {**params, "key": self.api_key})
        if not isinstance(payload, dict) or "status" not in payload:
            raise ProviderResponseError(self.name.value, f"{path} returned an unexpected payload")
        return payload

    def _check_status(self, payload: dict, path: str, *, allow_zero_results: bool = False) -> None:
        status = payload.get("status")
        if status == "OK" or (allow_zero_results and status == "ZERO_RESULTS"):
            return
        message = payload.get("error_message") or status
        raise ProviderResponseError(self.name.value, f"{path} status {message}")

    async def _first_result(self, path: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        payload = await self._call(path, params)
        self._check_status(payload, path)
        results = payload.get("results") or []
        if not results:
            raise ProviderResponseError(self.name.value, f"{path} returned no results")
        return results[0]

    async def forward_geocode(self, query: str) -> AddressResult:
        params: dict[str, Any] = {"address": query, "language": self.language}
        if self.region:
            params["region"] = self.region
        return from_primary(await self._first_result("geocode/json", params))

    async def reverse_geocode(self, point: GeoPoint) -> AddressResult:
        params = {"latlng": point.as_query(), "language": self.language}
        # Reverse lookups always describe the clicked point, not the matched feature centroid.
        result = from_primary(await self._first_result("geocode/json", params), fallback_point=point)
        return replace(result, source_point=point)

    async def suggest(self, text: str, *, limit: int | None = None) -> list[PlaceSuggestion]:
        params: dict[str, Any] = {"input": text, "language": self.language}
        if self.region:
            params["components"] = f"country:{self.region}"
        payload = await self._call("place/autocomplete/json", params)
        self._check_status(payload, "place/autocomplete/json", allow_zero_results=True)
        predictions = payload.get("predictions") or []
        suggestions = [suggestion_from_primary(prediction) for prediction in predictions]
        return suggestions[: limit or settings.suggestion_limit]

    async def place_details(self, place_id: str) -> AddressResult:
        params = {"place_id": place_id, "fields": PLACE_DETAIL_FIELDS, "language": self.language}
        payload = await self._call("place/details/json", params)
        self._check_status(payload, "place/details/json")
        result = payload.get("result")
        if not result:
            raise ProviderResponseError(self.name.value, f"place {place_id} has no details")
        return from_primary(result)

    async def distance_matrix(self, origin: GeoPoint, destination: GeoPoint) -> DistanceResult:
        """Driving distance/duration for a single origin/destination pair."""
        params = {
            "origins": origin.as_query(),
            "destinations": destination.as_query(),
            "mode": "driving",
            "units": "metric",
        }
        payload = await self._call("distancematrix/json", params)
        self._check_status(payload, "distancematrix/json")
        try:
            element = payload["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(self.name.value, "distance matrix has no elements") from exc

        if element.get("status") != "OK":
            raise ProviderResponseError(self.name.value, f"distance element status {element.get('status')}")
        try:
            meters = float(element["distance"]["value"])
            seconds = float(element["duration"]["value"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderResponseError(self.name.value, "distance element is missing values") from exc

        return DistanceResult(
            distance_km=round(meters / 1000.0, 2),
            duration_minutes=int(round(seconds / 60.0)),
            distance_text=element["distance"].get("text"),
            duration_text=element["duration"].get("text"),
        )
