"""Pydantic request/response models for geocoding endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import AddressResult, GeoPoint, PlaceSuggestion, ProviderName


class GeoPointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_point(cls, point: GeoPoint) -> "GeoPointModel":
        return cls(latitude=point.latitude, longitude=point.longitude)

    def to_point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


class AddressModel(BaseModel):
    full_address: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    source_point: GeoPointModel
    provider: Optional[ProviderName] = None
    place_ref: Optional[str] = None

    @classmethod
    def from_result(cls, result: AddressResult) -> "AddressModel":
        return cls(
            full_address=result.full_address,
            street_address=result.street_address,
            city=result.city,
            state=result.state,
            country=result.country,
            postal_code=result.postal_code,
            source_point=GeoPointModel.from_point(result.source_point),
            provider=result.provider,
            place_ref=result.place_ref,
        )

    def to_result(self) -> AddressResult:
        return AddressResult(
            source_point=self.source_point.to_point(),
            full_address=self.full_address,
            street_address=self.street_address,
            city=self.city,
            state=self.state,
            country=self.country,
            postal_code=self.postal_code,
            provider=self.provider,
            place_ref=self.place_ref,
        )


class PlaceSuggestionModel(BaseModel):
    id: str
    label: str
    secondary_label: Optional[str] = None
    provider: ProviderName
    provider_ref: str = Field(..., description="Opaque reference handed back when resolving the suggestion.")
    point: Optional[GeoPointModel] = None
    address: Optional[AddressModel] = None

    @classmethod
    def from_suggestion(cls, suggestion: PlaceSuggestion) -> "PlaceSuggestionModel":
        return cls(
            id=suggestion.id,
            label=suggestion.label,
            secondary_label=suggestion.secondary_label,
            provider=suggestion.provider,
            provider_ref=suggestion.provider_ref,
            point=GeoPointModel.from_point(suggestion.point) if suggestion.point else None,
            address=AddressModel.from_result(suggestion.address) if suggestion.address else None,
        )

    def to_suggestion(self) -> PlaceSuggestion:
        return PlaceSuggestion(
            id=self.id,
            label=self.label,
            secondary_label=self.secondary_label,
            provider=self.provider,
            provider_ref=self.provider_ref,
            point=self.point.to_point() if self.point else None,
            address=self.address.to_result() if self.address else None,
        )


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[PlaceSuggestionModel]


class ResolvedPlaceResponse(BaseModel):
    point: GeoPointModel
    address: AddressModel


class DistanceResponse(BaseModel):
    distance_km: float
    duration_minutes: int
    distance_text: Optional[str] = None
    duration_text: Optional[str] = None
