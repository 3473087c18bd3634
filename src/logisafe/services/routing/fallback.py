"""Synthetic directions used when the external provider cannot answer."""

from __future__ import annotations

from typing import Optional, Sequence

from ..geospatial import path_bounds, path_length_km
from .locations import resolve_coordinates

# Assumed average truck speed for synthetic durations.
AVERAGE_SPEED_KMH = 40.0

# Midpoint shift (dlat, dlng) so overlapping variants stay visually apart.
VARIANT_OFFSETS: dict[str, tuple[float, float]] = {
    "fastest": (0.05, -0.05),
    "safest": (-0.1, 0.1),
    "economical": (0.1, 0.05),
    "balanced": (-0.05, -0.1),
}
DEFAULT_OFFSET = (0.0, 0.0)


def synthetic_path(
    origin: Optional[str],
    destination: Optional[str],
    variant_key: Optional[str] = None,
) -> list[tuple[float, float]]:
    """Three-point path: origin, offset midpoint, destination."""
    start_lat, start_lng = resolve_coordinates(origin)
    end_lat, end_lng = resolve_coordinates(destination)
    d_lat, d_lng = VARIANT_OFFSETS.get(variant_key or "", DEFAULT_OFFSET)
    midpoint = ((start_lat + end_lat) / 2 + d_lat, (start_lng + end_lng) / 2 + d_lng)
    return [(start_lat, start_lng), midpoint, (end_lat, end_lng)]


def _text_distance(km: float) -> str:
    return f"{round(km)} km"


def _text_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    if hours and minutes:
        return f"{hours} hours {minutes} mins"
    if hours:
        return f"{hours} hours"
    return f"{minutes} mins"


def synthetic_directions_payload(
    origin: Optional[str],
    destination: Optional[str],
    waypoints: Sequence[str] = (),
    variant_key: Optional[str] = None,
) -> dict:
    """Build a provider-shaped directions payload around :func:`synthetic_path`."""
    origin_label = origin or "Mumbai"
    destination_label = destination or "Pune"
    path = synthetic_path(origin_label, destination_label, variant_key)
    distance_km = path_length_km(path)
    duration_seconds = distance_km / AVERAGE_SPEED_KMH * 3600.0
    start, end = path[0], path[-1]

    return {
        "status": "OK",
        "routes": [
            {
                "summary": f"{origin_label} to {destination_label}",
                "bounds": path_bounds(path),
                "legs": [
                    {
                        "steps": [
                            {"path": [{"lat": lat, "lng": lng} for lat, lng in path]},
                        ],
                        "distance": {"text": _text_distance(distance_km), "value": round(distance_km * 1000)},
                        "duration": {"text": _text_duration(duration_seconds), "value": round(duration_seconds)},
                        "start_location": {"lat": start[0], "lng": start[1]},
                        "end_location": {"lat": end[0], "lng": end[1]},
                    }
                ],
                "overview_polyline": {"points": ""},
                "warnings": ["Synthetic route: directions provider unavailable."],
                "waypoint_order": list(range(len(waypoints))),
            }
        ],
        "geocoded_waypoints": [],
        "available_travel_modes": ["DRIVING"],
    }
