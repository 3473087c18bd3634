"""GeoJSON export of rendered map scenes."""

from __future__ import annotations

from typing import Any, Dict, List

from ..maps.renderer import MapScene, RiskMarker, RouteOverlay


def linestring_coordinates(path: List[tuple[float, float]]) -> List[List[float]]:
    """Convert (lat, lon) pairs to GeoJSON positions (lon, lat order as per RFC 7946)."""
    if len(path) < 2:
        raise ValueError("LineString must have at least 2 coordinates")
    return [[lon, lat] for lat, lon in path]


def overlay_to_feature(overlay: RouteOverlay) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": linestring_coordinates(overlay.path),
        },
        "properties": {
            "kind": "route",
            "variant": overlay.variant_key,
            "selected": overlay.selected,
            "source": overlay.source,
            "fallbackReason": overlay.fallback_reason,
            "stroke": overlay.color,
            "stroke-width": overlay.weight,
            "stroke-opacity": overlay.opacity,
            "dashed": overlay.dashed,
        },
    }


def marker_to_feature(marker: RiskMarker) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [marker.longitude, marker.latitude],
        },
        "properties": {
            "kind": "risk_zone",
            "zoneId": marker.zone_id,
            "area": marker.area,
            "riskLevel": marker.risk_level.value,
            "radiusMeters": marker.radius_m,
            "marker-color": marker.color,
        },
    }


def scene_to_geojson(scene: MapScene | None) -> Dict[str, Any]:
    """FeatureCollection of every overlay and risk marker; empty when nothing is drawn."""
    features: List[Dict[str, Any]] = []
    if scene is not None:
        features.extend(overlay_to_feature(overlay) for overlay in scene.overlays)
        features.extend(marker_to_feature(marker) for marker in scene.risk_markers)
    return {"type": "FeatureCollection", "features": features}
