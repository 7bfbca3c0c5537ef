"""Serializers and display helpers for routing outputs."""

from __future__ import annotations

import math
from dataclasses import asdict
from typing import Optional

from ..routing.models import DirectionsResult
from ..routing.polyline import encode_polyline


def format_distance(meters: Optional[float]) -> str:
    if not meters:
        return "Unknown"
    return f"{meters:.0f} m" if meters < 1000 else f"{meters / 1000:.2f} km"


def format_duration(seconds: Optional[float]) -> str:
    if not seconds:
        return "Unknown"
    hours = math.floor(seconds / 3600)
    minutes = math.floor((seconds % 3600) / 60)
    return f"{hours} hr {minutes} min" if hours > 0 else f"{minutes} min"


def directions_result_to_json(result: DirectionsResult) -> dict:
    return {
        "location_id": result.location_id,
        "source": result.source.value,
        "degraded": result.degraded,
        "insufficient_points": result.insufficient_points,
        "interim": result.interim,
        "total_distance_meters": result.total_distance_meters,
        "total_duration_seconds": result.total_duration_seconds,
        "distance_text": format_distance(result.total_distance_meters),
        "duration_text": format_duration(result.total_duration_seconds),
        "ordered_waypoints": [asdict(waypoint) for waypoint in result.ordered_waypoints],
        "path": [[point.latitude, point.longitude] for point in result.path_polyline],
        "encoded_path": encode_polyline(result.path_polyline),
        "notes": list(result.notes),
    }
