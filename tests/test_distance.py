import asyncio

import httpx
import pytest

from delivery_fee.errors import DistanceUnavailable, ProviderResponseError
from delivery_fee.models.domain import DistanceResult, GeoPoint
from delivery_fee.services.distance import DistanceCalculator
from delivery_fee.services.geocoding import GoogleMapsClient

BRANCH = GeoPoint(31.9454, 35.9284)
CUSTOMER = GeoPoint(32.0728, 36.0880)


def _matrix(element: dict) -> dict:
    return {"status": "OK", "rows": [{"elements": [element]}]}


def _run_matrix(payload: dict) -> DistanceResult:
    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        async with httpx.AsyncClient(transport=transport) as http:
            return await GoogleMapsClient(api_key="k", client=http).distance_matrix(BRANCH, CUSTOMER)

    return asyncio.run(run())


def test_distance_matrix_converts_units() -> None:
    result = _run_matrix(
        _matrix(
            {
                "status": "OK",
                "distance": {"value": 24340, "text": "24.3 km"},
                "duration": {"value": 1500, "text": "25 mins"},
            }
        )
    )

    assert result.distance_km == 24.34
    assert result.duration_minutes == 25
    assert result.distance_text == "24.3 km"


def test_distance_matrix_element_failure() -> None:
    with pytest.raises(ProviderResponseError):
        _run_matrix(_matrix({"status": "ZERO_RESULTS"}))


class DummyMatrixClient:
    def __init__(self, result=None, exc=None, delay=0.0) -> None:
        self.result = result
        self.exc = exc
        self.delay = delay

    async def distance_matrix(self, origin, destination):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc:
            raise self.exc
        return self.result


def test_calculator_returns_provider_result() -> None:
    expected = DistanceResult(distance_km=18.2, duration_minutes=22)
    calculator = DistanceCalculator(DummyMatrixClient(result=expected), timeout=1.0)

    assert asyncio.run(calculator.calculate(BRANCH, CUSTOMER)) == expected


@pytest.mark.parametrize(
    "client",
    [
        None,
        DummyMatrixClient(exc=ProviderResponseError("google", "OVER_QUERY_LIMIT")),
        DummyMatrixClient(result=DistanceResult(1.0, 1), delay=1.0),
    ],
)
def test_calculator_failures_raise_distance_unavailable(client) -> None:
    calculator = DistanceCalculator(client, timeout=0.05)

    with pytest.raises(DistanceUnavailable):
        asyncio.run(calculator.calculate(BRANCH, CUSTOMER))
