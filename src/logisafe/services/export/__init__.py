"""Export services."""

from .geojson import scene_to_geojson

__all__ = ["scene_to_geojson"]
