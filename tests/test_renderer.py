import pytest

from logisafe.services.export.geojson import scene_to_geojson
from logisafe.services.maps.renderer import (
    CANVAS_SCALE,
    DEFAULT_WEIGHT,
    SELECTED_WEIGHT,
    VARIANT_COLORS,
    MapRenderer,
    project_to_canvas,
)
from logisafe.services.risk.zones import RiskZoneRegistry
from logisafe.services.routing.service import DirectionsResult, fetch_directions


def _directions(*keys: str) -> dict[str, DirectionsResult]:
    return {key: fetch_directions("Mumbai", "Pune", variant_key=key) for key in keys}


def test_canvas_projection() -> None:
    center = (19.0, 73.0)

    assert project_to_canvas(19.0, 73.0, center, (800, 600)) == (400, 300)
    assert project_to_canvas(20.0, 74.0, center, (800, 600)) == (400 + CANVAS_SCALE, 300 - CANVAS_SCALE)


def test_render_styles_selected_variant() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry(), map_available=True)

    scene = renderer.render(_directions("fastest", "safest"), selected="safest")

    assert scene.mode == "map"
    assert scene.selected == "safest"
    by_key = {overlay.variant_key: overlay for overlay in scene.overlays}
    assert by_key["safest"].weight == SELECTED_WEIGHT
    assert by_key["fastest"].weight == DEFAULT_WEIGHT
    assert by_key["fastest"].color == VARIANT_COLORS["fastest"]
    assert scene.overlays[-1].variant_key == "safest"
    assert all(overlay.canvas_points is None for overlay in scene.overlays)


def test_render_marks_synthetic_paths() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry(), map_available=True)

    scene = renderer.render(_directions("fastest"), selected="fastest")

    overlay = scene.overlays[0]
    assert overlay.source == "synthetic"
    assert overlay.fallback_reason == "unconfigured"
    assert overlay.dashed
    assert scene.synthetic_variants == ["fastest"]


def test_render_falls_back_to_canvas_without_map_api() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry())

    scene = renderer.render(_directions("fastest", "safest"), selected="safest")

    assert scene.mode == "canvas"
    for overlay in scene.overlays:
        assert len(overlay.canvas_points) == len(overlay.path) == 3
    assert all(marker.canvas_point is not None for marker in scene.risk_markers)


def test_render_flags_risk_zones_along_route() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry(), map_available=False)

    scene = renderer.render(_directions("fastest", "safest"), selected="fastest")

    assert [marker.area for marker in scene.risk_markers] == ["NH48 Highway"]
    assert scene.risk_markers[0].radius_m == 5000
    assert scene.risk_markers[0].canvas_radius == 5


def test_restyle_switches_selection() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry())
    renderer.render(_directions("fastest", "safest"), selected="safest")

    scene = renderer.restyle("fastest")

    assert scene.selected == "fastest"
    assert {o.variant_key: o.weight for o in scene.overlays} == {"fastest": SELECTED_WEIGHT, "safest": DEFAULT_WEIGHT}
    with pytest.raises(ValueError):
        renderer.restyle("balanced")


def test_clear_releases_overlays() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry())
    scene = renderer.render(_directions("fastest", "safest"), selected="safest")

    renderer.clear()

    assert renderer.scene is None
    assert scene.overlays == []
    assert scene.risk_markers == []
    with pytest.raises(ValueError):
        renderer.restyle("fastest")


def test_render_requires_paths() -> None:
    with pytest.raises(ValueError):
        MapRenderer(registry=RiskZoneRegistry()).render({})


def test_scene_geojson() -> None:
    renderer = MapRenderer(registry=RiskZoneRegistry())
    scene = renderer.render(_directions("fastest", "safest"), selected="safest")

    collection = scene_to_geojson(scene)

    assert collection["type"] == "FeatureCollection"
    routes = [f for f in collection["features"] if f["properties"]["kind"] == "route"]
    zones = [f for f in collection["features"] if f["properties"]["kind"] == "risk_zone"]
    assert len(routes) == 2
    assert len(zones) == 1
    lat, lng = scene.overlays[0].path[0]
    assert routes[0]["geometry"]["coordinates"][0] == [lng, lat]
    assert scene_to_geojson(None) == {"type": "FeatureCollection", "features": []}
