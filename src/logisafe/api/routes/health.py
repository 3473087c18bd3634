"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_directions_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.directions_client import check_health as directions_health_check
    return directions_health_check


@router.get("/health/maps", status_code=status.HTTP_200_OK)
def health_maps() -> dict:
    """Check the directions provider. Without an API key every route uses the synthetic fallback."""
    if not settings.maps_api_key:
        return {
            "service": "directions",
            "configured": False,
            "healthy": False,
            "fallback": "synthetic",
        }
    try:
        directions_health_check = _get_directions_health_check()
        status_flag = directions_health_check()
        return {
            "service": "directions",
            "configured": True,
            "healthy": status_flag,
            "fallback": None if status_flag else "synthetic",
        }
    except Exception as e:
        return {"service": "directions", "configured": True, "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection; without one, orders live in the local file store."""
    from ...persistence.database import check_database as database_status

    try:
        return database_status()
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
