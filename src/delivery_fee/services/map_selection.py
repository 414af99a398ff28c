"""Apply map clicks/drags as customer locations without feedback loops."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..errors import GeocodingUnavailable
from ..models.domain import AddressResult, GeoPoint
from .geocoding.chain import GeocodingChain
from .location import normalize

logger = logging.getLogger(__name__)


class MapLocationSession:
    """Per-widget state for map-driven location updates.

    Re-applying the location that is already applied (e.g. an initial location
    re-sent on every re-render) returns the cached address without a geocode,
    and re-applying a point whose lookup is still running joins that lookup.
    A newer apply makes older in-flight reverse geocodes stale.
    """

    def __init__(self, chain: GeocodingChain) -> None:
        self.chain = chain
        self._sequence = 0
        self._applied_key: tuple[float, float] | None = None
        self._applied_address: AddressResult | None = None
        self._pending: tuple[tuple[float, float], asyncio.Future] | None = None
        self._point: GeoPoint | None = None

    @property
    def point(self) -> GeoPoint | None:
        return self._point

    @property
    def address(self) -> AddressResult | None:
        return self._applied_address

    async def apply(self, value: Any) -> AddressResult | None:
        """Select ``value`` and reverse-geocode it.

        Returns None when the lookup was superseded by a newer selection.
        Raises InvalidCoordinates for bad input and GeocodingUnavailable when both
        providers fail.
        """
        point = normalize(value)
        if point.key == self._applied_key and self._applied_address is not None:
            return self._applied_address
        if self._pending is not None and self._pending[0] == point.key:
            return await asyncio.shield(self._pending[1])

        self._sequence += 1
        self._point = point
        lookup = asyncio.ensure_future(self._reverse_geocode(point, self._sequence))
        self._pending = (point.key, lookup)
        try:
            return await asyncio.shield(lookup)
        finally:
            if self._pending is not None and self._pending[1] is lookup:
                self._pending = None

    async def _reverse_geocode(self, point: GeoPoint, sequence: int) -> AddressResult | None:
        try:
            address = await self.chain.reverse_geocode(point)
        except GeocodingUnavailable:
            if sequence != self._sequence:
                return None
            self._applied_key = None
            self._applied_address = None
            raise

        if sequence != self._sequence:
            logger.debug(f"Dropping stale reverse geocode for {point.as_query()}")
            return None
        self._applied_key = point.key
        self._applied_address = address
        return address

    def reset(self) -> None:
        self._sequence += 1
        self._applied_key = None
        self._applied_address = None
        self._pending = None
        self._point = None
