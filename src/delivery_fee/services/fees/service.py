"""Delivery fee orchestration: location -> branch -> zones -> distance -> fee."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from ...config import settings
from ...data.branch_repository import nearest_branch, resolve_branch
from ...data.zone_repository import fetch_zones
from ...errors import DistanceUnavailable, GeocodingUnavailable, NoResolvableLocation, ZonesUnavailable
from ...models.domain import (
    Branch,
    CalculationMethod,
    DeliveryFeeResult,
    FeeBreakdown,
    GeoPoint,
    ShippingZone,
)
from ...persistence.filesystem import FileStorage
from ...schemas.fees import DeliveryFeeResponse
from ..distance import DistanceCalculator, build_distance_calculator
from ..geocoding.chain import GeocodingChain, build_geocoding_chain
from ..geospatial import within_service_area
from ..location import try_normalize
from ..pricing import compute_fee, compute_zone_only_fee, default_zone, match_zone, static_fee

logger = logging.getLogger(__name__)

MANUAL_ENTRY_WARNING = "Customer location could not be resolved; cannot calculate, enter the fee manually."

BranchLookup = Callable[[str], Awaitable[Branch | None]]
NearestBranchLookup = Callable[[GeoPoint], Awaitable[tuple[Branch, float] | None]]
ZoneFetcher = Callable[[str], Awaitable[Sequence[ShippingZone]]]


class ResolutionStage(str, Enum):
    RESOLVING_CUSTOMER_LOCATION = "resolving_customer_location"
    RESOLVING_BRANCH_LOCATION = "resolving_branch_location"
    FETCHING_ZONES = "fetching_zones"
    COMPUTING_DISTANCE = "computing_distance"
    MATCHING_ZONE = "matching_zone"
    ZONE_FALLBACK = "zone_fallback"
    STATIC_DEFAULT = "static_default"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class DeliveryFeeRequest:
    order_amount: float = 0.0
    customer_location: Any = None
    customer_address: str | None = None
    branch_id: str | None = None


async def _lookup_branch(branch_id: str) -> Branch | None:
    return await asyncio.to_thread(resolve_branch, branch_id)


async def _lookup_nearest_branch(point: GeoPoint) -> tuple[Branch, float] | None:
    return await asyncio.to_thread(nearest_branch, point)


class _Run:
    """Local state of one resolve() call."""

    def __init__(self, request: DeliveryFeeRequest) -> None:
        self.request = request
        self.stage = ResolutionStage.RESOLVING_CUSTOMER_LOCATION
        self.warnings: list[str] = []
        self.customer_point: GeoPoint | None = None
        self.branch_id: str | None = None
        self.branch_point: GeoPoint | None = None
        self.in_service_area: bool | None = None

    def enter(self, stage: ResolutionStage) -> None:
        logger.debug(f"Fee resolution stage {self.stage.value} -> {stage.value}")
        self.stage = stage

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class DeliveryFeeOrchestrator:
    """Runs the fee pipeline with three-tier degradation.

    Every path returns a DeliveryFeeResult; ``calculation_method`` tells which
    tier produced it.
    """

    def __init__(
        self,
        geocoder: GeocodingChain,
        distance_calculator: DistanceCalculator,
        *,
        branch_lookup: BranchLookup | None = None,
        nearest_branch_lookup: NearestBranchLookup | None = None,
        zone_fetcher: ZoneFetcher | None = None,
        default_branch_point: GeoPoint | None = None,
        static_default_fee: float | None = None,
        max_delivery_distance_km: float | None = None,
        service_area_bounds: Sequence[float] | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.distance_calculator = distance_calculator
        self.branch_lookup = branch_lookup or _lookup_branch
        self.nearest_branch_lookup = nearest_branch_lookup or _lookup_nearest_branch
        self.zone_fetcher = zone_fetcher or fetch_zones
        self.default_branch_point = default_branch_point or GeoPoint(
            settings.default_branch_latitude, settings.default_branch_longitude
        )
        self.static_default_fee = (
            static_default_fee if static_default_fee is not None else settings.static_default_fee
        )
        self.max_delivery_distance_km = max_delivery_distance_km or settings.max_delivery_distance_km
        self.service_area_bounds = tuple(service_area_bounds or settings.service_area_bounds)

    async def resolve(self, request: DeliveryFeeRequest) -> DeliveryFeeResult:
        run = _Run(request)
        try:
            return await self._resolve(run)
        except NoResolvableLocation as exc:
            logger.warning(f"No resolvable customer location: {exc.message}")
            run.warnings.append(MANUAL_ENTRY_WARNING)
            return self._static_default(run, manual_entry_required=True)
        except Exception:
            logger.exception(f"Fee resolution failed during {run.stage.value}; using static default")
            run.warnings.append(f"Unexpected error during {run.stage.value}; static default fee used.")
            return self._static_default(run)

    async def _resolve(self, run: _Run) -> DeliveryFeeResult:
        run.customer_point = await self._resolve_customer_point(run)
        run.in_service_area = within_service_area(run.customer_point, self.service_area_bounds)
        if not run.in_service_area:
            run.warn("Customer location is outside the service area.")

        run.enter(ResolutionStage.RESOLVING_BRANCH_LOCATION)
        run.branch_id, run.branch_point = await self._resolve_branch(run)

        run.enter(ResolutionStage.FETCHING_ZONES)
        zones = await self._fetch_zones(run)

        run.enter(ResolutionStage.COMPUTING_DISTANCE)
        try:
            distance = await self.distance_calculator.calculate(run.branch_point, run.customer_point)
        except DistanceUnavailable as exc:
            run.warn(f"Distance unavailable ({exc.message}); using zone estimate.")
            return self._degrade(run, zones)

        run.enter(ResolutionStage.MATCHING_ZONE)
        if distance.distance_km > self.max_delivery_distance_km:
            run.warn(
                f"Distance {distance.distance_km:.2f} km exceeds the {self.max_delivery_distance_km:.0f} km "
                "delivery range."
            )
        zone = match_zone(distance.distance_km, zones)
        breakdown = compute_fee(distance.distance_km, zone, run.request.order_amount)
        method = CalculationMethod.DISTANCE_ZONE_MATCH if zone else CalculationMethod.DISTANCE_FALLBACK_TABLE
        run.enter(ResolutionStage.DONE)
        logger.info(
            f"Fee {breakdown.final_fee:.2f} via {method.value} "
            f"({distance.distance_km:.2f} km, zone={zone.id if zone else None})"
        )
        return self._build(
            run,
            breakdown,
            method,
            zone=zone,
            distance_km=distance.distance_km,
            duration_minutes=distance.duration_minutes,
        )

    async def _resolve_customer_point(self, run: _Run) -> GeoPoint:
        request = run.request
        if request.customer_location is not None:
            point = try_normalize(request.customer_location)
            if point is not None:
                return point
            run.warn("Stored customer coordinates are invalid; geocoding the address instead.")

        address = (request.customer_address or "").strip()
        if not address:
            raise NoResolvableLocation("no stored coordinates and no address text")
        try:
            result = await self.geocoder.forward_geocode(address)
        except GeocodingUnavailable as exc:
            raise NoResolvableLocation(exc.message) from exc
        return result.source_point

    async def _resolve_branch(self, run: _Run) -> tuple[str | None, GeoPoint]:
        branch_id = run.request.branch_id
        try:
            if branch_id is not None:
                branch = await self.branch_lookup(branch_id)
                if branch is not None:
                    return branch.id, branch.point
                run.warn(f"Branch {branch_id} not found; using the default branch location.")
                return branch_id, self.default_branch_point

            nearest = await self.nearest_branch_lookup(run.customer_point)
            if nearest is not None:
                branch, distance_km = nearest
                logger.info(f"Using nearest branch {branch.id} ({distance_km:.2f} km straight line)")
                return branch.id, branch.point
            run.warn("No branches available; using the default branch location.")
        except Exception as exc:
            run.warn(f"Branch lookup failed ({exc}); using the default branch location.")
        return branch_id, self.default_branch_point

    async def _fetch_zones(self, run: _Run) -> list[ShippingZone]:
        if run.branch_id is None:
            return []
        try:
            return list(await self.zone_fetcher(run.branch_id))
        except ZonesUnavailable as exc:
            run.warn(f"Shipping zones unavailable ({exc.message}); continuing without zones.")
            return []

    def _degrade(self, run: _Run, zones: Sequence[ShippingZone]) -> DeliveryFeeResult:
        zone = default_zone(zones)
        if zone is not None:
            run.enter(ResolutionStage.ZONE_FALLBACK)
            breakdown = compute_zone_only_fee(zone, run.request.order_amount)
            return self._build(run, breakdown, CalculationMethod.ZONE_FALLBACK, zone=zone)
        return self._static_default(run)

    def _static_default(self, run: _Run, *, manual_entry_required: bool = False) -> DeliveryFeeResult:
        run.enter(ResolutionStage.STATIC_DEFAULT)
        return self._build(
            run,
            static_fee(self.static_default_fee),
            CalculationMethod.STATIC_DEFAULT,
            manual_entry_required=manual_entry_required,
        )

    @staticmethod
    def _build(
        run: _Run,
        breakdown: FeeBreakdown,
        method: CalculationMethod,
        *,
        zone: ShippingZone | None = None,
        distance_km: float | None = None,
        duration_minutes: int | None = None,
        manual_entry_required: bool = False,
    ) -> DeliveryFeeResult:
        return DeliveryFeeResult(
            base_fee=breakdown.base_fee,
            surcharge=breakdown.surcharge,
            final_fee=breakdown.final_fee,
            free_shipping_applied=breakdown.free_shipping_applied,
            calculation_method=method,
            distance_km=distance_km,
            duration_minutes=duration_minutes,
            matched_zone=zone,
            branch_id=run.branch_id,
            customer_point=run.customer_point,
            branch_point=run.branch_point,
            within_service_area=run.in_service_area,
            manual_entry_required=manual_entry_required,
            warnings=tuple(run.warnings),
        )


def build_orchestrator() -> DeliveryFeeOrchestrator:
    return DeliveryFeeOrchestrator(build_geocoding_chain(), build_distance_calculator())


def build_request(
    customer_location_or_address: Any, branch_id: str | int | None = None, order_amount: float = 0.0
) -> DeliveryFeeRequest:
    """Interpret coordinates, an address string, or a stored address record."""
    location: Any = None
    address: str | None = None
    if isinstance(customer_location_or_address, str):
        if try_normalize(customer_location_or_address) is not None:
            location = customer_location_or_address
        else:
            address = customer_location_or_address
    elif isinstance(customer_location_or_address, Mapping):
        record = customer_location_or_address
        address = record.get("address") or record.get("full_address")
        if any(key in record for key in ("lat", "latitude")):
            location = record
    else:
        location = customer_location_or_address
    return DeliveryFeeRequest(
        order_amount=float(order_amount or 0.0),
        customer_location=location,
        customer_address=address,
        branch_id=str(branch_id) if branch_id is not None else None,
    )


def record_calculation(result: DeliveryFeeResult, storage: FileStorage | None = None) -> None:
    """Append the result to the audit log. Never raises; an audit failure must not block an order."""
    try:
        storage = storage or FileStorage()
        record = DeliveryFeeResponse.from_result(result).model_dump(mode="json")
        storage.append_jsonl(storage.audit_log_path, record)
    except OSError as e:
        logger.error(f"Failed to record fee calculation: {e}")


async def resolve_delivery_fee(
    customer_location_or_address: Any,
    branch_id: str | int | None = None,
    order_amount: float = 0.0,
    *,
    orchestrator: DeliveryFeeOrchestrator | None = None,
    storage: FileStorage | None = None,
) -> DeliveryFeeResult:
    """Single entry point for the rest of the application."""
    request = build_request(customer_location_or_address, branch_id, order_amount)
    result = await (orchestrator or build_orchestrator()).resolve(request)
    if settings.audit_calculations:
        record_calculation(result, storage)
    return result


