"""Error taxonomy for the delivery fee pipeline."""

from __future__ import annotations


class DeliveryFeeError(Exception):
    """Base class for every error raised by the fee resolution pipeline."""

    code = "delivery_fee_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidCoordinates(DeliveryFeeError, ValueError):
    code = "invalid_coordinates"


class ProviderError(DeliveryFeeError):
    """A single mapping provider failed; callers may fall through to another one."""

    code = "provider_error"

    def __init__(self, provider: str, message: str | None = None) -> None:
        super().__init__(f"{provider}: {message or self.code}")
        self.provider = provider


class ProviderNotConfigured(ProviderError):
    code = "provider_not_configured"


class ProviderResponseError(ProviderError):
    """Transport succeeded but the payload was unusable (bad status, no results, malformed)."""

    code = "provider_response_error"


class GeocodingUnavailable(DeliveryFeeError):
    code = "geocoding_unavailable"


class DistanceUnavailable(DeliveryFeeError):
    code = "distance_unavailable"


class ZonesUnavailable(DeliveryFeeError):
    code = "zones_unavailable"


class NoResolvableLocation(DeliveryFeeError):
    code = "no_resolvable_location"


class SuggestionResolutionError(DeliveryFeeError):
    code = "suggestion_resolution_failed"
