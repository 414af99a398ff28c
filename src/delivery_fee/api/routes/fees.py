"""Delivery fee endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...data.zone_repository import fetch_zones
from ...errors import ZonesUnavailable
from ...models.domain import CalculationMethod
from ...schemas.fees import DeliveryFeeResponse, FeeBreakdownResponse, FeeCalculationRequest, FeeQuoteRequest
from ...services.fees import service as fee_service
from ...services.pricing import compute_fee, match_zone

router = APIRouter(prefix="/fees", tags=["fees"])


@router.post("/calculate", response_model=DeliveryFeeResponse, status_code=status.HTTP_200_OK)
async def calculate(payload: FeeCalculationRequest) -> DeliveryFeeResponse:
    """Resolve the delivery fee; degraded tiers are reported, never raised."""
    customer: dict = {}
    if payload.latitude is not None and payload.longitude is not None:
        customer.update(lat=payload.latitude, lng=payload.longitude)
    if payload.address:
        customer["address"] = payload.address

    result = await fee_service.resolve_delivery_fee(
        customer,
        branch_id=payload.branch_id,
        order_amount=payload.order_amount,
    )
    return DeliveryFeeResponse.from_result(result)


@router.post("/quote", response_model=FeeBreakdownResponse, status_code=status.HTTP_200_OK)
async def quote(payload: FeeQuoteRequest) -> FeeBreakdownResponse:
    """Price a known distance against explicit or configured zones."""
    if payload.zones is not None:
        try:
            zones = [zone.to_zone() for zone in payload.zones]
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    elif payload.branch_id:
        try:
            zones = await fetch_zones(payload.branch_id)
        except ZonesUnavailable as exc:
            logging.warning(f"Quoting without zones: {exc.message}")
            zones = []
    else:
        zones = []

    zone = match_zone(payload.distance_km, zones)
    breakdown = compute_fee(payload.distance_km, zone, payload.order_amount)
    method = CalculationMethod.DISTANCE_ZONE_MATCH if zone else CalculationMethod.DISTANCE_FALLBACK_TABLE
    return FeeBreakdownResponse.from_breakdown(breakdown, zone, method)
