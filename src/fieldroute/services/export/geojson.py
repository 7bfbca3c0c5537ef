"""GeoJSON export utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from ..routing.models import DirectionsResult


def linestring_feature(coordinates: List[List[float]], properties: Dict[str, Any]) -> Dict[str, Any]:
    """Build a LineString feature.

    Args:
        coordinates: List of [lat, lon] pairs

    Returns:
        GeoJSON Feature in lon,lat order
    """
    if not coordinates or len(coordinates) < 2:
        raise ValueError("LineString must have at least 2 coordinates")

    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [[lon, lat] for lat, lon in coordinates],
        },
        "properties": properties,
    }


def directions_result_to_geojson(result: DirectionsResult) -> Dict[str, Any]:
    """Convert a display route into a FeatureCollection.

    The path becomes one LineString (when it has at least two points) and each
    ordered waypoint becomes a Point feature carrying its visit sequence.
    """
    features: List[Dict[str, Any]] = []

    path = [[point.latitude, point.longitude] for point in result.path_polyline]
    if len(path) >= 2:
        features.append(
            linestring_feature(
                path,
                {
                    "kind": "route",
                    "location_id": result.location_id,
                    "source": result.source.value,
                    "degraded": result.degraded,
                    "distance_m": result.total_distance_meters,
                    "duration_s": result.total_duration_seconds,
                },
            )
        )

    for sequence, waypoint in enumerate(result.ordered_waypoints, start=1):
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [waypoint.longitude, waypoint.latitude]},
                "properties": {
                    "kind": "waypoint",
                    "sequence": sequence,
                    "label": waypoint.label,
                    "type": waypoint.kind,
                    "source_index": waypoint.sequence_hint,
                },
            }
        )

    return {"type": "FeatureCollection", "features": features}


def save_geojson(collection: Dict[str, Any], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(collection, handle, ensure_ascii=False, indent=2)
