"""Geocoding providers and the primary/secondary fallback chain."""

from .adapters import from_primary, from_secondary
from .base import GeocodingProvider
from .chain import GeocodingChain, build_geocoding_chain
from .google import GoogleMapsClient
from .nominatim import NominatimClient

__all__ = [
    "GeocodingChain",
    "GeocodingProvider",
    "GoogleMapsClient",
    "NominatimClient",
    "build_geocoding_chain",
    "from_primary",
    "from_secondary",
]
