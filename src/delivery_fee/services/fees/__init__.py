"""Delivery fee orchestration."""

from .service import (
    DeliveryFeeOrchestrator,
    DeliveryFeeRequest,
    ResolutionStage,
    build_orchestrator,
    resolve_delivery_fee,
)

__all__ = [
    "DeliveryFeeOrchestrator",
    "DeliveryFeeRequest",
    "ResolutionStage",
    "build_orchestrator",
    "resolve_delivery_fee",
]
