import asyncio
from pathlib import Path

import httpx
import pytest

from delivery_fee.data.zone_repository import fetch_zones
from delivery_fee.errors import DistanceUnavailable, GeocodingUnavailable, ZonesUnavailable
from delivery_fee.models.domain import AddressResult, Branch, CalculationMethod, DistanceResult, GeoPoint, ShippingZone
from delivery_fee.persistence.filesystem import FileStorage
from delivery_fee.services.fees import service as fee_service
from delivery_fee.services.fees.service import (
    MANUAL_ENTRY_WARNING,
    DeliveryFeeOrchestrator,
    DeliveryFeeRequest,
    build_request,
)

BRANCH = Branch(id="B1", name="Abdoun", latitude=31.9466, longitude=35.8887)
DEFAULT_BRANCH_POINT = GeoPoint(31.9454, 35.9284)
CUSTOMER = {"lat": 31.99, "lng": 35.87}
ZONES = [
    ShippingZone(id="Z1", name="Inner", min_distance_km=0, max_distance_km=10, base_fee=3.0),
    ShippingZone(
        id="Z2",
        name="Outer",
        min_distance_km=10,
        max_distance_km=40,
        base_fee=6.0,
        free_shipping_threshold=50.0,
        is_default=True,
    ),
]


class DummyGeocoder:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.queries: list[str] = []

    async def forward_geocode(self, query):
        self.queries.append(query)
        if self.fail:
            raise GeocodingUnavailable("forward geocode failed on every provider")
        return AddressResult(source_point=GeoPoint(31.98, 35.86), full_address=query)


class DummyDistance:
    def __init__(self, distance_km: float | None = 12.5, exc: Exception | None = None) -> None:
        self.distance_km = distance_km
        self.exc = exc
        self.calls: list[tuple[GeoPoint, GeoPoint]] = []

    async def calculate(self, origin, destination):
        self.calls.append((origin, destination))
        if self.exc is not None:
            raise self.exc
        return DistanceResult(distance_km=self.distance_km, duration_minutes=20)


def _orchestrator(
    geocoder=None,
    distance=None,
    zones=ZONES,
    zone_exc: Exception | None = None,
    branch: Branch | None = BRANCH,
    branch_exc: Exception | None = None,
) -> DeliveryFeeOrchestrator:
    async def branch_lookup(branch_id):
        if branch_exc is not None:
            raise branch_exc
        return branch if branch and branch.id == branch_id else None

    async def nearest_lookup(point):
        return (branch, 4.2) if branch else None

    async def zone_fetcher(branch_id):
        if zone_exc is not None:
            raise zone_exc
        return list(zones)

    return DeliveryFeeOrchestrator(
        geocoder or DummyGeocoder(),
        distance or DummyDistance(),
        branch_lookup=branch_lookup,
        nearest_branch_lookup=nearest_lookup,
        zone_fetcher=zone_fetcher,
        default_branch_point=DEFAULT_BRANCH_POINT,
        static_default_fee=5.0,
        max_delivery_distance_km=100.0,
        service_area_bounds=(29.0, 34.0, 33.5, 39.5),
    )


def _resolve(orchestrator: DeliveryFeeOrchestrator, **kwargs):
    kwargs.setdefault("branch_id", "B1")
    return asyncio.run(orchestrator.resolve(DeliveryFeeRequest(**kwargs)))


def test_distance_matched_to_zone() -> None:
    distance = DummyDistance(12.5)

    result = _resolve(_orchestrator(distance=distance), customer_location=CUSTOMER, order_amount=20)

    assert result.calculation_method is CalculationMethod.DISTANCE_ZONE_MATCH
    assert result.matched_zone.id == "Z2"
    assert result.final_fee == 6.0
    assert result.distance_km == 12.5
    assert result.is_estimate is False
    assert result.branch_id == "B1"
    assert distance.calls == [(BRANCH.point, GeoPoint(31.99, 35.87))]


def test_free_shipping_from_matched_zone() -> None:
    result = _resolve(_orchestrator(), customer_location=CUSTOMER, order_amount=60)

    assert result.free_shipping_applied is True
    assert result.final_fee == 0.0


def test_uncovered_distance_uses_fallback_table() -> None:
    result = _resolve(_orchestrator(distance=DummyDistance(30.0), zones=[]), customer_location=CUSTOMER)

    assert result.calculation_method is CalculationMethod.DISTANCE_FALLBACK_TABLE
    assert result.matched_zone is None
    assert result.base_fee == 9.0
    assert result.surcharge == 1.0
    assert result.final_fee == 10.0


def test_unavailable_zones_are_treated_as_empty() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(7.0), zone_exc=ZonesUnavailable("zone store down"))

    result = _resolve(orchestrator, customer_location=CUSTOMER)

    assert result.calculation_method is CalculationMethod.DISTANCE_FALLBACK_TABLE
    assert result.final_fee == 4.0
    assert any("zones unavailable" in warning for warning in result.warnings)


def test_malformed_zone_payload_still_uses_distance(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fee_service.settings, "zone_store_url", "https://zones.test/api")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["bad-row"]))

    async def run():
        async with httpx.AsyncClient(transport=transport) as http:
            orchestrator = _orchestrator(distance=DummyDistance(8.0))
            orchestrator.zone_fetcher = lambda branch_id: fetch_zones(branch_id, client=http)
            return await orchestrator.resolve(DeliveryFeeRequest(branch_id="B1", customer_location=CUSTOMER))

    result = asyncio.run(run())

    assert result.calculation_method is CalculationMethod.DISTANCE_FALLBACK_TABLE
    assert result.final_fee == 4.0
    assert result.distance_km == 8.0


def test_distance_failure_degrades_to_default_zone() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(exc=DistanceUnavailable("OVER_QUERY_LIMIT")))

    result = _resolve(orchestrator, customer_location=CUSTOMER, order_amount=10)

    assert result.calculation_method is CalculationMethod.ZONE_FALLBACK
    assert result.matched_zone.id == "Z2"
    assert result.final_fee == 6.0
    assert result.surcharge == 0.0
    assert result.distance_km is None
    assert result.is_estimate is True


def test_zone_fallback_honours_free_shipping() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(exc=DistanceUnavailable("timeout")))

    result = _resolve(orchestrator, customer_location=CUSTOMER, order_amount=75)

    assert result.free_shipping_applied is True
    assert result.final_fee == 0.0


def test_distance_failure_without_zones_uses_static_default() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(exc=DistanceUnavailable("no key")), zones=[])

    result = _resolve(orchestrator, customer_location=CUSTOMER)

    assert result.calculation_method is CalculationMethod.STATIC_DEFAULT
    assert result.final_fee == 5.0
    assert result.manual_entry_required is False


def test_total_degradation_never_raises() -> None:
    orchestrator = _orchestrator(
        geocoder=DummyGeocoder(fail=True),
        distance=DummyDistance(exc=DistanceUnavailable("no key")),
        zones=[],
    )

    result = _resolve(orchestrator, customer_location=None, customer_address=None)

    assert result.calculation_method is CalculationMethod.STATIC_DEFAULT
    assert result.final_fee == 5.0
    assert result.manual_entry_required is True
    assert MANUAL_ENTRY_WARNING in result.warnings


def test_failed_address_geocode_requires_manual_entry() -> None:
    geocoder = DummyGeocoder(fail=True)

    result = _resolve(_orchestrator(geocoder=geocoder), customer_address="Unknown street 99")

    assert geocoder.queries == ["Unknown street 99"]
    assert result.manual_entry_required is True
    assert result.customer_point is None


def test_invalid_stored_coordinates_fall_back_to_address() -> None:
    geocoder = DummyGeocoder()

    result = _resolve(
        _orchestrator(geocoder=geocoder),
        customer_location={"lat": "n/a", "lng": 35.9},
        customer_address="Abdoun, Amman",
    )

    assert geocoder.queries == ["Abdoun, Amman"]
    assert result.customer_point == GeoPoint(31.98, 35.86)
    assert result.calculation_method is CalculationMethod.DISTANCE_ZONE_MATCH


def test_stored_coordinates_skip_geocoding() -> None:
    geocoder = DummyGeocoder()

    _resolve(_orchestrator(geocoder=geocoder), customer_location=CUSTOMER, customer_address="Abdoun, Amman")

    assert geocoder.queries == []


def test_nearest_branch_used_without_branch_id() -> None:
    result = _resolve(_orchestrator(), branch_id=None, customer_location=CUSTOMER)

    assert result.branch_id == "B1"
    assert result.branch_point == BRANCH.point
    assert result.calculation_method is CalculationMethod.DISTANCE_ZONE_MATCH


def test_unknown_branch_uses_default_location() -> None:
    result = _resolve(_orchestrator(), branch_id="B404", customer_location=CUSTOMER)

    assert result.branch_point == DEFAULT_BRANCH_POINT
    assert result.branch_id == "B404"


def test_branch_lookup_failure_uses_default_location() -> None:
    orchestrator = _orchestrator(branch_exc=FileNotFoundError("data/branches.xlsx"))

    result = _resolve(orchestrator, customer_location=CUSTOMER)

    assert result.branch_point == DEFAULT_BRANCH_POINT
    assert result.calculation_method is CalculationMethod.DISTANCE_ZONE_MATCH


def test_unexpected_error_returns_static_default() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(exc=RuntimeError("bug")))

    result = _resolve(orchestrator, customer_location=CUSTOMER)

    assert result.calculation_method is CalculationMethod.STATIC_DEFAULT
    assert result.manual_entry_required is False
    assert any("computing_distance" in warning for warning in result.warnings)


def test_out_of_area_and_long_distance_are_flagged() -> None:
    orchestrator = _orchestrator(distance=DummyDistance(180.0), zones=[])

    result = _resolve(orchestrator, customer_location={"lat": 24.71, "lng": 46.67})

    assert result.within_service_area is False
    assert len(result.warnings) == 2
    assert result.calculation_method is CalculationMethod.DISTANCE_FALLBACK_TABLE


@pytest.mark.parametrize(
    ("value", "location", "address"),
    [
        ("31.95,35.91", "31.95,35.91", None),
        ("Rainbow Street, Amman", None, "Rainbow Street, Amman"),
        ({"full_address": "Abdoun"}, None, "Abdoun"),
        ({"latitude": 31.9, "longitude": 35.9, "address": "Abdoun"}, {"latitude": 31.9, "longitude": 35.9, "address": "Abdoun"}, "Abdoun"),
        ((31.9, 35.9), (31.9, 35.9), None),
    ],
)
def test_build_request_interprets_input(value, location, address) -> None:
    request = build_request(value, branch_id=7, order_amount="12.5")

    assert request.customer_location == location
    assert request.customer_address == address
    assert request.branch_id == "7"
    assert request.order_amount == 12.5


def test_resolve_delivery_fee_writes_audit_record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fee_service.settings, "audit_calculations", True)
    storage = FileStorage(root=tmp_path)

    result = asyncio.run(
        fee_service.resolve_delivery_fee(
            CUSTOMER, branch_id="B1", order_amount=20, orchestrator=_orchestrator(), storage=storage
        )
    )

    records = storage.read_jsonl(storage.audit_log_path)
    assert len(records) == 1
    assert records[0]["calculation_method"] == result.calculation_method.value
    assert records[0]["final_fee"] == result.final_fee
    assert records[0]["branch_id"] == "B1"
