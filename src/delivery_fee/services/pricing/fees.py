"""Fee rules: distance-banded table, free-shipping threshold, long-distance surcharge."""

from __future__ import annotations

import math

from ...models.domain import FeeBreakdown, ShippingZone

LONG_DISTANCE_THRESHOLD_KM = 25.0
SURCHARGE_STEP_KM = 5.0
SURCHARGE_PER_STEP = 1.00

# (upper bound km, fee) checked in order; beyond the last band the fee grows per step.
DISTANCE_BANDS: tuple[tuple[float, float], ...] = (
    (5.0, 3.00),
    (10.0, 4.00),
    (15.0, 5.00),
    (20.0, 6.00),
    (25.0, 7.00),
)
BEYOND_BANDS_BASE_FEE = 8.00


def _money(value: float) -> float:
    return round(float(value), 2)


def _steps_beyond(distance_km: float) -> int:
    return math.ceil((distance_km - LONG_DISTANCE_THRESHOLD_KM) / SURCHARGE_STEP_KM)


def distance_banded_fee(distance_km: float) -> float:
    """Base fee used when no configured zone covers the distance."""
    for upper_bound, fee in DISTANCE_BANDS:
        if distance_km <= upper_bound:
            return fee
    return _money(BEYOND_BANDS_BASE_FEE + _steps_beyond(distance_km) * SURCHARGE_PER_STEP)


def long_distance_surcharge(distance_km: float) -> float:
    if distance_km <= LONG_DISTANCE_THRESHOLD_KM:
        return 0.0
    return _money(_steps_beyond(distance_km) * SURCHARGE_PER_STEP)


def free_shipping_applies(zone: ShippingZone | None, order_amount: float) -> bool:
    # Zero or negative thresholds mean unset.
    if zone is None or zone.free_shipping_threshold is None or zone.free_shipping_threshold <= 0:
        return False
    return order_amount >= zone.free_shipping_threshold


def compute_fee(distance_km: float, matched_zone: ShippingZone | None, order_amount: float) -> FeeBreakdown:
    """Fee for a measured distance.

    The surcharge is added after the free-shipping zeroing, so a free-shipping
    order beyond 25 km still pays the surcharge. Pending product-owner
    confirmation; keep as is.
    """
    base_fee = matched_zone.base_fee if matched_zone is not None else distance_banded_fee(distance_km)
    free_shipping = free_shipping_applies(matched_zone, order_amount)
    running_fee = 0.0 if free_shipping else base_fee
    surcharge = long_distance_surcharge(distance_km)
    return FeeBreakdown(
        base_fee=_money(base_fee),
        surcharge=surcharge,
        final_fee=_money(running_fee + surcharge),
        free_shipping_applied=free_shipping,
    )


def compute_zone_only_fee(zone: ShippingZone, order_amount: float) -> FeeBreakdown:
    """Estimate without a distance: the zone's base fee and threshold, no surcharge."""
    free_shipping = free_shipping_applies(zone, order_amount)
    return FeeBreakdown(
        base_fee=_money(zone.base_fee),
        surcharge=0.0,
        final_fee=0.0 if free_shipping else _money(zone.base_fee),
        free_shipping_applied=free_shipping,
    )


def static_fee(amount: float) -> FeeBreakdown:
    return FeeBreakdown(base_fee=_money(amount), surcharge=0.0, final_fee=_money(amount), free_shipping_applied=False)
