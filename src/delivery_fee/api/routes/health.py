"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_nominatim_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.geocoding.nominatim import check_health as nominatim_health_check
    return nominatim_health_check


def _zone_store_backend() -> str:
    if settings.zone_store_url:
        return "http"
    if settings.supabase_url and settings.supabase_key:
        return "supabase"
    return "unconfigured"


@router.get("/health/providers", status_code=status.HTTP_200_OK)
async def health_providers() -> dict:
    """Report which mapping providers fee resolution can use right now."""
    try:
        nominatim_healthy = await _get_nominatim_health_check()()
        nominatim = {"service": "nominatim", "healthy": nominatim_healthy}
    except Exception as e:
        nominatim = {"service": "nominatim", "healthy": False, "error": str(e)}

    return {
        "primary": {
            "service": "google",
            "configured": settings.primary_provider_configured,
            "distance_matrix": settings.primary_provider_configured,
        },
        "secondary": nominatim,
        "zone_store": _zone_store_backend(),
    }
