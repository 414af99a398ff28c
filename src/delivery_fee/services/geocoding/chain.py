"""Primary -> secondary geocoding chain."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ...config import settings
from ...errors import GeocodingUnavailable, ProviderError, ProviderNotConfigured
from ...models.domain import AddressResult, GeoPoint, PlaceSuggestion
from .base import GeocodingProvider
from .google import GoogleMapsClient
from .nominatim import NominatimClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeocodingChain:
    """Try the primary provider once, then the secondary once.

    Any primary failure is enough to fall through; neither provider is retried.
    """

    def __init__(
        self,
        primary: GoogleMapsClient | None = None,
        secondary: GeocodingProvider | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.primary = primary
        self.secondary = secondary or NominatimClient()
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds

    @property
    def providers(self) -> list[GeocodingProvider]:
        return [provider for provider in (self.primary, self.secondary) if provider is not None]

    async def _bounded(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self.timeout)

    async def _first_success(
        self, operation: str, call: Callable[[GeocodingProvider], Awaitable[T]]
    ) -> T:
        failures: list[str] = []
        for provider in self.providers:
            try:
                return await self._bounded(call(provider))
            except asyncio.TimeoutError:
                failures.append(f"{provider.name.value}: timed out after {self.timeout}s")
            except ProviderError as exc:
                failures.append(exc.message)
            except Exception as exc:
                logger.exception(f"Unexpected {provider.name.value} failure during {operation}")
                failures.append(f"{provider.name.value}: {exc}")
            logger.warning(f"{operation} via {provider.name.value} failed: {failures[-1]}")
        raise GeocodingUnavailable(f"{operation} failed on every provider ({'; '.join(failures)})")

    async def forward_geocode(self, query: str) -> AddressResult:
        text = (query or "").strip()
        if not text:
            raise GeocodingUnavailable("forward geocode needs a non-empty query")
        return await self._first_success("forward geocode", lambda provider: provider.forward_geocode(text))

    async def reverse_geocode(self, point: GeoPoint) -> AddressResult:
        return await self._first_success("reverse geocode", lambda provider: provider.reverse_geocode(point))

    async def suggest(self, text: str, *, limit: int | None = None) -> list[PlaceSuggestion]:
        return await self._first_success("suggest", lambda provider: provider.suggest(text, limit=limit))

    async def place_details(self, place_ref: str) -> AddressResult:
        """Resolve a primary-provider suggestion; only the primary has place details."""
        if self.primary is None:
            raise ProviderNotConfigured("google", "place details need the primary provider")
        return await self._bounded(self.primary.place_details(place_ref))


def build_geocoding_chain() -> GeocodingChain:
    """Build the chain from settings; a missing Google key routes everything to Nominatim."""
    primary: GoogleMapsClient | None = None
    if settings.primary_provider_configured:
        primary = GoogleMapsClient()
    else:
        logger.warning("Google Maps API key not configured; geocoding will use Nominatim only")
    return GeocodingChain(primary=primary, secondary=NominatimClient())
