"""Pydantic request/response models for fee endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..models.domain import CalculationMethod, DeliveryFeeResult, FeeBreakdown, ShippingZone
from .geocoding import GeoPointModel


class ShippingZoneModel(BaseModel):
    id: str
    name: str
    min_distance_km: float
    max_distance_km: float
    base_fee: float
    free_shipping_threshold: Optional[float] = None
    is_default: bool = False

    @classmethod
    def from_zone(cls, zone: ShippingZone) -> "ShippingZoneModel":
        return cls(
            id=zone.id,
            name=zone.name,
            min_distance_km=zone.min_distance_km,
            max_distance_km=zone.max_distance_km,
            base_fee=zone.base_fee,
            free_shipping_threshold=zone.free_shipping_threshold,
            is_default=zone.is_default,
        )

    def to_zone(self) -> ShippingZone:
        return ShippingZone(
            id=self.id,
            name=self.name,
            min_distance_km=self.min_distance_km,
            max_distance_km=self.max_distance_km,
            base_fee=self.base_fee,
            free_shipping_threshold=self.free_shipping_threshold,
            is_default=self.is_default,
        )


class FeeCalculationRequest(BaseModel):
    branch_id: Optional[str] = Field(
        default=None, description="Fulfillment branch. When omitted the nearest branch is used."
    )
    order_amount: float = Field(default=0.0, ge=0.0, description="Order subtotal checked against free-shipping thresholds.")
    latitude: Optional[float] = Field(default=None, description="Stored customer latitude, if known.")
    longitude: Optional[float] = Field(default=None, description="Stored customer longitude, if known.")
    address: Optional[str] = Field(default=None, description="Stored address text, geocoded when coordinates are missing.")

    @model_validator(mode="after")
    def _paired_coordinates(self) -> "FeeCalculationRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class FeeQuoteRequest(BaseModel):
    distance_km: float = Field(..., ge=0.0)
    order_amount: float = Field(default=0.0, ge=0.0)
    branch_id: Optional[str] = None
    zones: Optional[List[ShippingZoneModel]] = Field(
        default=None, description="Explicit zones; when omitted the branch's configured zones are used."
    )


class FeeBreakdownResponse(BaseModel):
    base_fee: float
    surcharge: float
    final_fee: float
    free_shipping_applied: bool
    matched_zone: Optional[ShippingZoneModel] = None
    calculation_method: CalculationMethod

    @classmethod
    def from_breakdown(
        cls, breakdown: FeeBreakdown, zone: ShippingZone | None, method: CalculationMethod
    ) -> "FeeBreakdownResponse":
        return cls(
            base_fee=breakdown.base_fee,
            surcharge=breakdown.surcharge,
            final_fee=breakdown.final_fee,
            free_shipping_applied=breakdown.free_shipping_applied,
            matched_zone=ShippingZoneModel.from_zone(zone) if zone else None,
            calculation_method=method,
        )


class DeliveryFeeResponse(BaseModel):
    distance_km: Optional[float] = None
    duration_minutes: Optional[int] = None
    matched_zone: Optional[ShippingZoneModel] = None
    base_fee: float
    surcharge: float
    final_fee: float
    free_shipping_applied: bool
    calculation_method: CalculationMethod
    is_estimate: bool = Field(..., description="True when the operator should double-check the fee.")
    manual_entry_required: bool = False
    computed_at: datetime
    branch_id: Optional[str] = None
    customer_point: Optional[GeoPointModel] = None
    branch_point: Optional[GeoPointModel] = None
    within_service_area: Optional[bool] = None
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: DeliveryFeeResult) -> "DeliveryFeeResponse":
        return cls(
            distance_km=result.distance_km,
            duration_minutes=result.duration_minutes,
            matched_zone=ShippingZoneModel.from_zone(result.matched_zone) if result.matched_zone else None,
            base_fee=result.base_fee,
            surcharge=result.surcharge,
            final_fee=result.final_fee,
            free_shipping_applied=result.free_shipping_applied,
            calculation_method=result.calculation_method,
            is_estimate=result.is_estimate,
            manual_entry_required=result.manual_entry_required,
            computed_at=result.computed_at,
            branch_id=result.branch_id,
            customer_point=GeoPointModel.from_point(result.customer_point) if result.customer_point else None,
            branch_point=GeoPointModel.from_point(result.branch_point) if result.branch_point else None,
            within_service_area=result.within_service_area,
            warnings=list(result.warnings),
        )


class BranchModel(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float


class NearestBranchResponse(BaseModel):
    branch: BranchModel
    distance_km: float
