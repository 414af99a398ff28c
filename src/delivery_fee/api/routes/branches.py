"""Branch and shipping zone endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...data import branch_repository
from ...data.zone_repository import fetch_zones
from ...errors import InvalidCoordinates, ZonesUnavailable
from ...schemas.fees import BranchModel, NearestBranchResponse, ShippingZoneModel
from ...services.location import normalize
from ...services.pricing import match_zone

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("/nearest", response_model=NearestBranchResponse)
async def nearest(lat: float = Query(...), lng: float = Query(...)) -> NearestBranchResponse:
    try:
        point = normalize({"lat": lat, "lng": lng})
    except InvalidCoordinates as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message) from exc
    try:
        found = await asyncio.to_thread(branch_repository.nearest_branch, point)
    except (FileNotFoundError, ValueError) as exc:
        logging.error(f"Branch data unavailable: {exc}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active branches with coordinates found")
    branch, distance_km = found
    return NearestBranchResponse(
        branch=BranchModel(id=branch.id, name=branch.name, latitude=branch.latitude, longitude=branch.longitude),
        distance_km=distance_km,
    )


async def _zones_or_503(branch_id: str):
    try:
        return await fetch_zones(branch_id)
    except ZonesUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc


@router.get("/{branch_id}/zones", response_model=list[ShippingZoneModel])
async def zones(branch_id: str) -> list[ShippingZoneModel]:
    return [ShippingZoneModel.from_zone(zone) for zone in await _zones_or_503(branch_id)]


@router.get("/{branch_id}/zones/match", response_model=ShippingZoneModel | None)
async def zone_for_distance(branch_id: str, distance_km: float = Query(..., ge=0.0)) -> ShippingZoneModel | None:
    """Zone covering ``distance_km``; null means the distance-banded table applies."""
    zone = match_zone(distance_km, await _zones_or_503(branch_id))
    return ShippingZoneModel.from_zone(zone) if zone else None
