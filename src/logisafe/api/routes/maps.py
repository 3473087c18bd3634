"""Directions endpoint with synthetic fallback."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import DirectionsRequest, DirectionsResponse
from ...services.routing.service import directions_for_request

router = APIRouter(prefix="/maps", tags=["maps"])


@router.post("/directions", response_model=DirectionsResponse, status_code=status.HTTP_200_OK)
def directions(payload: DirectionsRequest) -> DirectionsResponse:
    """Provider directions, or a synthetic 3-point route flagged with ``source="synthetic"``."""
    try:
        return directions_for_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        import logging
        logging.exception(f"Error fetching directions: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch directions: {str(exc)}"
        ) from exc
