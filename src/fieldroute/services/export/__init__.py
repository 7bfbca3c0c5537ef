"""Export services."""

from .geojson import directions_result_to_geojson, linestring_feature, save_geojson

__all__ = [
    "directions_result_to_geojson",
    "linestring_feature",
    "save_geojson",
]
