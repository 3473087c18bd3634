"""Route optimization endpoints."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import RouteOptimizeRequest, RouteVariantModel
from ...services.routing.service import optimize_routes

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=Dict[str, RouteVariantModel], status_code=status.HTTP_200_OK)
def optimize(payload: RouteOptimizeRequest) -> Dict[str, RouteVariantModel]:
    try:
        return optimize_routes(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        # Log the full error for debugging
        import logging
        logging.exception(f"Error optimizing routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize routes: {str(exc)}"
        ) from exc
