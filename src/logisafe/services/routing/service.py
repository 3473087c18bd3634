"""Routing orchestration service."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Literal, Mapping, Optional, Sequence

from ...config import settings
from ...models.domain import RouteVariant
from ...schemas.routing import (
    DirectionsRequest,
    DirectionsResponse,
    LatLng,
    RouteOptimizeRequest,
    RouteVariantModel,
)
from .directions_client import DirectionsClient, DirectionsError, extract_path
from .fallback import synthetic_directions_payload, synthetic_path
from .variants import RouteVariantSource, SimulatedVariantSource

logger = logging.getLogger(__name__)

_RESPONSE_FIELDS = {"status", "routes", "source", "path", "fallback_reason", "fallbackReason"}


@dataclass(slots=True)
class DirectionsResult:
    """A drawable path and where it came from."""

    variant_key: Optional[str]
    path: list[tuple[float, float]]
    payload: dict
    source: Literal["provider", "synthetic"]
    fallback_reason: Optional[str] = None

    @property
    def is_synthetic(self) -> bool:
        return self.source == "synthetic"


def get_variant_source() -> RouteVariantSource:
    return SimulatedVariantSource()


def generate_variants(
    payload: RouteOptimizeRequest,
    source: RouteVariantSource | None = None,
) -> dict[str, RouteVariant]:
    variant_source = source or get_variant_source()
    return variant_source.generate(
        origin=payload.start_location or "",
        destination=payload.end_location or "",
        stops=payload.stops,
        cargo_type=payload.cargo_type,
        mode="extended" if payload.use_gemini else "basic",
    )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def variant_to_model(variant: RouteVariant) -> RouteVariantModel:
    return RouteVariantModel(
        name=variant.name,
        description=variant.description,
        distance=f"{_format_number(variant.distance_km)} km",
        duration=f"{_format_number(variant.duration_hours)} hours",
        risk_score=variant.risk_score,
        path=variant.path,
        risk_areas=list(variant.risk_areas),
        fuel_consumption=f"{_format_number(variant.fuel_liters)} liters",
        cost_estimate=f"₹{_format_number(variant.cost_estimate)}" if variant.cost_estimate is not None else None,
        waypoints=list(variant.waypoints),
        badge_text=variant.badge_text,
        icon=variant.icon,
        directions=list(variant.directions),
        distance_km=variant.distance_km,
        duration_hours=variant.duration_hours,
        fuel_liters=variant.fuel_liters,
    )


def optimize_routes(
    payload: RouteOptimizeRequest,
    source: RouteVariantSource | None = None,
) -> dict[str, RouteVariantModel]:
    variants = generate_variants(payload, source)
    logger.info(
        f"Generated {len(variants)} route variants for {payload.start_location} -> {payload.end_location}"
    )
    return {key: variant_to_model(variant) for key, variant in variants.items()}


def _synthetic_result(
    origin: Optional[str],
    destination: Optional[str],
    waypoints: Sequence[str],
    variant_key: Optional[str],
    reason: str,
) -> DirectionsResult:
    return DirectionsResult(
        variant_key=variant_key,
        path=synthetic_path(origin, destination, variant_key),
        payload=synthetic_directions_payload(origin, destination, waypoints, variant_key),
        source="synthetic",
        fallback_reason=reason,
    )


def fetch_directions(
    origin: Optional[str],
    destination: Optional[str],
    waypoints: Sequence[str] = (),
    travel_mode: str | None = None,
    variant_key: Optional[str] = None,
    client: DirectionsClient | None = None,
) -> DirectionsResult:
    """Fetch a real path, falling back to the synthetic 3-point path on any failure."""
    if not origin or not destination:
        return _synthetic_result(origin, destination, waypoints, variant_key, "invalid_request")

    try:
        directions_client = client or DirectionsClient()
    except ValueError as e:
        logger.info(f"Directions provider not configured ({e}). Using synthetic path.")
        return _synthetic_result(origin, destination, waypoints, variant_key, "unconfigured")

    try:
        data = directions_client.directions(origin, destination, waypoints, travel_mode)
        path = extract_path(data)
    except DirectionsError as e:
        logger.warning(f"Directions request failed for {variant_key or 'route'}: {e}. Using synthetic path.")
        return _synthetic_result(origin, destination, waypoints, variant_key, e.reason)
    except ValueError as e:
        logger.warning(f"Directions payload unusable for {variant_key or 'route'}: {e}. Using synthetic path.")
        return _synthetic_result(origin, destination, waypoints, variant_key, "malformed")
    except Exception as e:
        logger.error(f"Unexpected error fetching directions: {e}. Using synthetic path.")
        return _synthetic_result(origin, destination, waypoints, variant_key, "transport")

    return DirectionsResult(variant_key=variant_key, path=path, payload=data, source="provider")


def fetch_variant_directions(
    variants: Mapping[str, RouteVariant],
    origin: str,
    destination: str,
    stops: Sequence[str] = (),
    max_workers: int | None = None,
) -> dict[str, DirectionsResult]:
    """Fetch directions for every variant concurrently; results are keyed by variant."""
    if not variants:
        return {}
    workers = min(len(variants), max_workers or settings.directions_max_parallel_requests)
    results: dict[str, DirectionsResult] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_key = {
            executor.submit(fetch_directions, origin, destination, list(stops), None, key): key
            for key in variants
        }
        for future in as_completed(future_to_key):
            key = future_to_key[future]
            results[key] = future.result()
    synthetic = sorted(key for key, result in results.items() if result.is_synthetic)
    if synthetic:
        logger.info(f"Synthetic paths used for variants: {', '.join(synthetic)}")
    return results


def directions_for_request(payload: DirectionsRequest) -> DirectionsResponse:
    if not payload.origin or not payload.destination:
        raise ValueError("Origin and destination are required")
    result = fetch_directions(
        payload.origin,
        payload.destination,
        payload.waypoints,
        payload.travel_mode,
        payload.variant_key,
    )
    return DirectionsResponse(
        **{key: value for key, value in result.payload.items() if key not in _RESPONSE_FIELDS},
        status=result.payload.get("status", "OK"),
        routes=result.payload.get("routes", []),
        source=result.source,
        fallback_reason=result.fallback_reason,
        path=[LatLng(lat=lat, lng=lng) for lat, lng in result.path],
    )
