import math
from types import SimpleNamespace

import pytest

from delivery_fee.errors import InvalidCoordinates
from delivery_fee.models.domain import GeoPoint
from delivery_fee.services.geospatial import haversine_km, within_service_area
from delivery_fee.services.location import normalize, try_normalize


@pytest.mark.parametrize(
    "value",
    [
        {"lat": 31.95, "lng": 35.91},
        {"latitude": "31.95", "longitude": "35.91"},
        {"lat": 31.95, "lon": 35.91},
        "31.95,35.91",
        " 31.95 ; 35.91 ",
        (31.95, 35.91),
        [31.95, 35.91],
        SimpleNamespace(latitude=31.95, longitude=35.91),
    ],
)
def test_normalize_accepts_common_shapes(value) -> None:
    point = normalize(value)

    assert point == GeoPoint(31.95, 35.91)
    assert isinstance(point.latitude, float)


def test_normalize_returns_existing_point_unchanged() -> None:
    point = GeoPoint(31.0, 36.0)

    assert normalize(point) is point


@pytest.mark.parametrize(
    "value",
    [
        None,
        {},
        {"lat": 31.9},
        {"lat": True, "lng": 35.9},
        {"lat": "", "lng": 35.9},
        {"lat": "north", "lng": 35.9},
        {"lat": math.nan, "lng": 35.9},
        {"lat": 31.9, "lng": math.inf},
        {"lat": 91, "lng": 35.9},
        {"lat": 31.9, "lng": -180.5},
        "31.9",
        (31.9, 35.9, 10.0),
        object(),
    ],
)
def test_normalize_rejects_invalid_input(value) -> None:
    with pytest.raises(InvalidCoordinates):
        normalize(value)


def test_try_normalize_returns_none_for_invalid_input() -> None:
    assert try_normalize("not a point") is None
    assert try_normalize({"lat": 0, "lng": 0}) == GeoPoint(0.0, 0.0)


def test_invalid_coordinates_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        normalize({"lat": 100, "lng": 0})


def test_geopoint_rejects_out_of_range_values() -> None:
    with pytest.raises(InvalidCoordinates):
        GeoPoint(-91.0, 0.0)
    with pytest.raises(InvalidCoordinates):
        GeoPoint(0.0, "35.9")


def test_haversine_amman_to_zarqa() -> None:
    distance = haversine_km(31.9454, 35.9284, 32.0728, 36.0880)

    assert 19.0 < distance < 22.0


def test_within_service_area_includes_edges() -> None:
    bounds = (29.0, 34.0, 33.5, 39.5)

    assert within_service_area(GeoPoint(31.95, 35.91), bounds)
    assert within_service_area(GeoPoint(29.0, 34.0), bounds)
    assert not within_service_area(GeoPoint(24.7, 46.7), bounds)

