"""OpenStreetMap Nominatim client (keyless forward/reverse search)."""

from __future__ import annotations

from typing import Any

import httpx

from ...config import settings
from ...errors import ProviderResponseError
from ...models.domain import AddressResult, GeoPoint, PlaceSuggestion, ProviderName
from .adapters import from_secondary, suggestion_from_secondary
from .base import GeocodingProvider, HttpProviderClient


class NominatimClient(HttpProviderClient, GeocodingProvider):
    name = ProviderName.NOMINATIM

    def __init__(
        self,
        base_url: str | None = None,
        *,
        user_agent: str | None = None,
        country_codes: tuple[str, ...] | None = None,
        language: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url or settings.nominatim_base_url,
            timeout=timeout,
            headers={"User-Agent": user_agent or settings.nominatim_user_agent},
            client=client,
        )
        self.country_codes = country_codes if country_codes is not None else settings.nominatim_country_codes
        self.language = language or settings.nominatim_language

    def _search_params(self, text: str, limit: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "format": "jsonv2",
            "q": text,
            "limit": limit,
            "addressdetails": 1,
            "accept-language": self.language,
        }
        if self.country_codes:
            params["countrycodes"] = ",".join(self.country_codes)
        return params

    async def _search(self, text: str, limit: int) -> list[dict]:
        payload = await self._get_json("search", self._search_params(text, limit))
        if not isinstance(payload, list):
            raise ProviderResponseError(self.name.value, "search returned an unexpected payload")
        return payload

    async def forward_geocode(self, query: str) -> AddressResult:
        results = await self._search(query, 1)
        if not results:
            raise ProviderResponseError(self.name.value, f"no results for {query!r}")
        return from_secondary(results[0])

    async def reverse_geocode(self, point: GeoPoint) -> AddressResult:
        params = {
            "format": "jsonv2",
            "lat": point.latitude,
            "lon": point.longitude,
            "addressdetails": 1,
            "accept-language": self.language,
        }
        payload = await self._get_json("reverse", params)
        if not isinstance(payload, dict) or payload.get("error"):
            message = payload.get("error") if isinstance(payload, dict) else "unexpected payload"
            raise ProviderResponseError(self.name.value, f"reverse lookup failed: {message}")
        return from_secondary({**payload, "lat": point.latitude, "lon": point.longitude})

    async def suggest(self, text: str, *, limit: int | None = None) -> list[PlaceSuggestion]:
        results = await self._search(text, limit or settings.suggestion_limit)
        return [suggestion_from_secondary(item) for item in results]


async def check_health(base_url: str | None = None) -> bool:
    """Check Nominatim reachability with a cheap status request."""
    base = (base_url or settings.nominatim_base_url).rstrip("/")
    try:
        async with httpx.AsyncClient(
            timeout=5.0, headers={"User-Agent": settings.nominatim_user_agent}
        ) as client:
            response = await client.get(f"{base}/status", params={"format": "json"})
            response.raise_for_status()
            return response.json().get("status") == 0
    except (httpx.HTTPError, ValueError, AttributeError):
        return False
