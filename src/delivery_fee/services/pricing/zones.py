"""Distance -> shipping zone matching."""

from __future__ import annotations

from typing import Iterable, Sequence

from ...models.domain import ShippingZone


def match_zone(distance_km: float, zones: Iterable[ShippingZone]) -> ShippingZone | None:
    """Return the zone whose inclusive range covers ``distance_km``.

    Zones are checked by ascending ``max_distance_km`` so overlaps resolve to the
    closer, cheaper band. ``sorted`` is stable, so equal maxima keep input order.
    None means "use the distance-banded table", not an error.
    """

    for zone in sorted(zones, key=lambda item: item.max_distance_km):
        if zone.contains(distance_km):
            return zone
    return None


def default_zone(zones: Sequence[ShippingZone]) -> ShippingZone | None:
    """First zone flagged as default, else the first zone in store order."""

    for zone in zones:
        if zone.is_default:
            return zone
    return zones[0] if zones else None
