"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString, Point

EARTH_RADIUS_KM = 6371.0
# Rough conversion used for corridor checks; good enough at Indian latitudes.
KM_PER_DEGREE = 111.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(path: Sequence[tuple[float, float]]) -> float:
    """Sum of haversine distances along a (lat, lng) path."""
    return sum(
        haversine_km(lat1, lon1, lat2, lon2)
        for (lat1, lon1), (lat2, lon2) in zip(path, path[1:])
    )


def path_bounds(path: Sequence[tuple[float, float]]) -> dict[str, dict[str, float]]:
    """Provider-style northeast/southwest bounds for a (lat, lng) path."""
    if not path:
        raise ValueError("Cannot compute bounds of an empty path.")
    if len(path) == 1:
        lat, lng = path[0]
        return {"northeast": {"lat": lat, "lng": lng}, "southwest": {"lat": lat, "lng": lng}}
    min_lng, min_lat, max_lng, max_lat = LineString([(lng, lat) for lat, lng in path]).bounds
    return {
        "northeast": {"lat": max_lat, "lng": max_lng},
        "southwest": {"lat": min_lat, "lng": min_lng},
    }


def distance_to_path_km(lat: float, lon: float, path: Sequence[tuple[float, float]]) -> float:
    """Approximate distance in km from a point to a (lat, lng) polyline."""
    if not path:
        raise ValueError("Cannot measure distance to an empty path.")
    point = Point(lon, lat)
    if len(path) == 1:
        geometry = Point(path[0][1], path[0][0])
    else:
        geometry = LineString([(lng, lat_) for lat_, lng in path])
    return point.distance(geometry) * KM_PER_DEGREE
