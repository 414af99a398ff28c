"""Point-to-point driving distance and duration."""

from __future__ import annotations

import asyncio
import logging

from ..config import settings
from ..errors import DistanceUnavailable, ProviderError
from ..models.domain import DistanceResult, GeoPoint
from .geocoding.google import GoogleMapsClient

logger = logging.getLogger(__name__)


class DistanceCalculator:
    """Distance Matrix lookups against the primary provider only.

    There is no secondary distance source; failures raise DistanceUnavailable and
    the caller decides how to degrade.
    """

    def __init__(self, client: GoogleMapsClient | None = None, *, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds

    async def calculate(self, origin: GeoPoint, destination: GeoPoint) -> DistanceResult:
        if self.client is None:
            raise DistanceUnavailable("distance matrix provider is not configured")
        try:
            result = await asyncio.wait_for(self.client.distance_matrix(origin, destination), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise DistanceUnavailable(f"distance matrix timed out after {self.timeout}s") from exc
        except ProviderError as exc:
            raise DistanceUnavailable(exc.message) from exc

        logger.info(
            f"Distance {origin.as_query()} -> {destination.as_query()}: "
            f"{result.distance_km:.2f} km, {result.duration_minutes} min"
        )
        return result


def build_distance_calculator() -> DistanceCalculator:
    client = GoogleMapsClient() if settings.primary_provider_configured else None
    return DistanceCalculator(client)
