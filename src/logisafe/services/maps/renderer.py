"""Map overlay rendering for route variants and nearby risk zones.

The renderer does not draw pixels. It produces overlay descriptions (one
polyline per variant plus risk-zone circles) that a map client draws. When no
map API is available, every overlay additionally carries flat canvas
coordinates so the client can draw a simple 2D fallback instead.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional, Sequence

from ...config import settings
from ...models.domain import RiskLevel, RiskZone
from ..geospatial import path_bounds
from ..risk.zones import RiskZoneRegistry, get_risk_zone_registry
from ..routing.service import DirectionsResult

logger = logging.getLogger(__name__)

VARIANT_COLORS = {
    "fastest": "#2563eb",
    "safest": "#16a34a",
    "economical": "#d97706",
    "balanced": "#7c3aed",
}
DEFAULT_VARIANT_COLOR = "#6b7280"

RISK_LEVEL_COLORS = {
    RiskLevel.HIGH: "#dc2626",
    RiskLevel.MEDIUM: "#f59e0b",
    RiskLevel.LOW: "#eab308",
}
RISK_RADIUS_METERS = {
    RiskLevel.HIGH: 5000,
    RiskLevel.MEDIUM: 3000,
    RiskLevel.LOW: 2000,
}

SELECTED_WEIGHT = 6
DEFAULT_WEIGHT = 3
SELECTED_OPACITY = 1.0
DEFAULT_OPACITY = 0.5

# Pixels per degree in the canvas fallback projection.
CANVAS_SCALE = 20
DEFAULT_CANVAS_SIZE = (800, 600)

MapMode = Literal["map", "canvas"]
LatLngPair = tuple[float, float]


@dataclass(slots=True)
class RouteOverlay:
    variant_key: str
    path: list[LatLngPair]
    color: str
    weight: int
    opacity: float
    selected: bool
    source: Literal["provider", "synthetic"]
    fallback_reason: Optional[str] = None
    canvas_points: Optional[list[tuple[float, float]]] = None

    @property
    def dashed(self) -> bool:
        # Synthetic paths are drawn dashed so they are never mistaken for real roads.
        return self.source == "synthetic"


@dataclass(slots=True)
class RiskMarker:
    zone_id: str
    area: str
    risk_level: RiskLevel
    latitude: float
    longitude: float
    color: str
    radius_m: int
    canvas_point: Optional[tuple[float, float]] = None
    canvas_radius: Optional[float] = None


@dataclass(slots=True)
class MapScene:
    mode: MapMode
    center: LatLngPair
    bounds: dict[str, dict[str, float]]
    overlays: list[RouteOverlay] = field(default_factory=list)
    risk_markers: list[RiskMarker] = field(default_factory=list)
    canvas_size: tuple[int, int] = DEFAULT_CANVAS_SIZE

    @property
    def selected(self) -> Optional[str]:
        for overlay in self.overlays:
            if overlay.selected:
                return overlay.variant_key
        return None

    @property
    def synthetic_variants(self) -> list[str]:
        return [overlay.variant_key for overlay in self.overlays if overlay.source == "synthetic"]


def project_to_canvas(
    lat: float,
    lng: float,
    center: LatLngPair,
    canvas_size: tuple[int, int] = DEFAULT_CANVAS_SIZE,
) -> tuple[float, float]:
    """Flat projection used by the canvas fallback, centred on ``center``."""
    width, height = canvas_size
    return (
        width / 2 + (lng - center[1]) * CANVAS_SCALE,
        height / 2 - (lat - center[0]) * CANVAS_SCALE,
    )


def _style(variant_key: str, selected: bool) -> tuple[str, int, float]:
    color = VARIANT_COLORS.get(variant_key, DEFAULT_VARIANT_COLOR)
    if selected:
        return color, SELECTED_WEIGHT, SELECTED_OPACITY
    return color, DEFAULT_WEIGHT, DEFAULT_OPACITY


class MapRenderer:
    """Holds the overlays currently drawn for one workflow."""

    def __init__(
        self,
        registry: RiskZoneRegistry | None = None,
        map_available: bool | None = None,
        canvas_size: tuple[int, int] = DEFAULT_CANVAS_SIZE,
        radius_km: float | None = None,
    ) -> None:
        self.registry = registry or get_risk_zone_registry()
        self.map_available = bool(settings.maps_api_key) if map_available is None else map_available
        self.canvas_size = canvas_size
        self.radius_km = radius_km
        self._lock = threading.Lock()
        self._scene: MapScene | None = None

    @property
    def scene(self) -> Optional[MapScene]:
        with self._lock:
            return self._scene

    def render(
        self,
        directions: Mapping[str, DirectionsResult],
        selected: Optional[str] = None,
    ) -> MapScene:
        """Replace every overlay with one polyline per variant and the risk zones along them."""
        if not directions:
            raise ValueError("Nothing to render: no variant paths.")
        all_points = [point for result in directions.values() for point in result.path]
        bounds = path_bounds(all_points)
        center = (
            (bounds["northeast"]["lat"] + bounds["southwest"]["lat"]) / 2,
            (bounds["northeast"]["lng"] + bounds["southwest"]["lng"]) / 2,
        )
        mode: MapMode = "map" if self.map_available else "canvas"

        overlays = []
        for key, result in directions.items():
            color, weight, opacity = _style(key, key == selected)
            overlays.append(
                RouteOverlay(
                    variant_key=key,
                    path=list(result.path),
                    color=color,
                    weight=weight,
                    opacity=opacity,
                    selected=key == selected,
                    source=result.source,
                    fallback_reason=result.fallback_reason,
                    canvas_points=(
                        [project_to_canvas(lat, lng, center, self.canvas_size) for lat, lng in result.path]
                        if mode == "canvas"
                        else None
                    ),
                )
            )
        # Selected polyline last so it is drawn on top.
        overlays.sort(key=lambda overlay: overlay.selected)

        markers = [
            self._marker(zone, center, mode)
            for zone in self._zones_along([result.path for result in directions.values()])
        ]
        scene = MapScene(
            mode=mode,
            center=center,
            bounds=bounds,
            overlays=overlays,
            risk_markers=markers,
            canvas_size=self.canvas_size,
        )
        with self._lock:
            self._scene = scene
        logger.debug(f"Rendered {len(overlays)} overlays and {len(markers)} risk markers ({mode})")
        return scene

    def restyle(self, selected: str) -> MapScene:
        """Re-render the current overlays with ``selected`` highlighted."""
        with self._lock:
            scene = self._scene
            if scene is None:
                raise ValueError("Nothing rendered yet.")
            keys = {overlay.variant_key for overlay in scene.overlays}
            if selected not in keys:
                raise ValueError(f"Unknown route variant: {selected}")
            for overlay in scene.overlays:
                overlay.selected = overlay.variant_key == selected
                overlay.color, overlay.weight, overlay.opacity = _style(overlay.variant_key, overlay.selected)
            scene.overlays.sort(key=lambda overlay: overlay.selected)
            return scene

    def clear(self) -> None:
        """Release every overlay and marker."""
        with self._lock:
            released = self._scene
            self._scene = None
        if released is not None:
            released.overlays.clear()
            released.risk_markers.clear()

    def _zones_along(self, paths: Sequence[Sequence[LatLngPair]]) -> list[RiskZone]:
        seen: dict[str, RiskZone] = {}
        for path in paths:
            for zone in self.registry.near_path(path, self.radius_km):
                seen.setdefault(zone.id, zone)
        return list(seen.values())

    def _marker(self, zone: RiskZone, center: LatLngPair, mode: MapMode) -> RiskMarker:
        radius_m = RISK_RADIUS_METERS.get(zone.risk_level, 2000)
        marker = RiskMarker(
            zone_id=zone.id,
            area=zone.area,
            risk_level=zone.risk_level,
            latitude=zone.latitude,
            longitude=zone.longitude,
            color=RISK_LEVEL_COLORS.get(zone.risk_level, DEFAULT_VARIANT_COLOR),
            radius_m=radius_m,
        )
        if mode == "canvas":
            marker.canvas_point = project_to_canvas(zone.latitude, zone.longitude, center, self.canvas_size)
            marker.canvas_radius = radius_m / 1000
        return marker
