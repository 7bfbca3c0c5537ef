"""Geofence operations used by survey listing and location assignment."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from ...models.domain import Geofence, InvalidCoordinateError, Point
from ..geospatial import polygon_centroid

# A drawn fence needs three corners plus the tap that closes it.
MIN_DRAWN_POINTS = 4

logger = logging.getLogger(__name__)


def survey_center(survey: dict[str, Any]) -> Optional[Point]:
    """Read `terrainData.centerPoint.coordinates` ([lng, lat]) from a survey record."""

    terrain = survey.get("terrainData") or {}
    center = terrain.get("centerPoint") or {}
    coordinates = center.get("coordinates") or []
    if len(coordinates) < 2:
        return None
    lng, lat = coordinates[0], coordinates[1]
    # A zero latitude or longitude counts as missing, as the survey list screen treats it.
    if not lat or not lng:
        return None
    try:
        return Point(float(lat), float(lng))
    except (InvalidCoordinateError, TypeError, ValueError):
        return None


def filter_surveys_in_geofence(surveys: Iterable[dict[str, Any]], geofence: Geofence) -> list[dict[str, Any]]:
    """Keep surveys whose centre point lies inside the geofence."""

    kept: list[dict[str, Any]] = []
    dropped = 0
    for survey in surveys:
        center = survey_center(survey)
        if center is not None and geofence.contains(center):
            kept.append(survey)
        else:
            dropped += 1
    if dropped:
        logger.debug("Filtered out %d surveys outside the geofence", dropped)
    return kept


def close_ring(points: Sequence[Point]) -> list[Point]:
    ring = list(points)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def build_location_payload(
    *,
    title: str,
    drawn_points: Sequence[Point],
    radius: int,
    assigned_to: str,
    created_by: str,
    status: str = "INACTIVE",
) -> dict[str, Any]:
    """Location creation body with the GeoJSON fence and its vertex-mean centre."""

    if not title.strip():
        raise ValueError("Please enter a title for the location")
    if len(drawn_points) < MIN_DRAWN_POINTS:
        raise ValueError("Please draw a complete polygon on the map")

    geofence = Geofence.from_points(close_ring(drawn_points))
    # The centre averages every drawn tap, including the closing one.
    center = polygon_centroid(drawn_points)
    return {
        "title": title.strip(),
        "geofence": geofence.to_geojson(),
        "centerPoint": {
            "type": "Point",
            "coordinates": [center.longitude, center.latitude],
        },
        "radius": int(radius),
        "assignedTo": assigned_to,
        "status": status,
        "createdBy": created_by,
    }
