from .fees import (
    compute_fee,
    compute_zone_only_fee,
    distance_banded_fee,
    long_distance_surcharge,
    static_fee,
)
from .zones import default_zone, match_zone

__all__ = [
    "compute_fee",
    "compute_zone_only_fee",
    "default_zone",
    "distance_banded_fee",
    "long_distance_surcharge",
    "match_zone",
    "static_fee",
]
