"""Geospatial helper functions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from shapely.geometry import MultiPoint

from ..models.domain import Point

EARTH_RADIUS_KM = 6371.0
DEFAULT_REGION_DELTA = 0.05


def haversine_km(a: Point, b: Point) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Return True if the point is inside the polygon, using ray casting.

    A horizontal ray is cast from the point and edge crossings are counted;
    an odd count means inside. Longitude is treated as x and latitude as y.
    Points lying exactly on an edge or vertex get whatever answer the crossing
    count produces, which differs between edges.
    """

    if len(polygon) < 3:
        raise ValueError(f"Polygon requires at least 3 vertices, got {len(polygon)}")

    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].longitude, polygon[i].latitude
        xj, yj = polygon[j].longitude, polygon[j].latitude
        if (yi > point.latitude) != (yj > point.latitude):
            x_cross = (xj - xi) * (point.latitude - yi) / (yj - yi) + xi
            if point.longitude < x_cross:
                inside = not inside
        j = i
    return inside


def polygon_centroid(polygon: Sequence[Point]) -> Point:
    """Vertex mean of the polygon (not the area-weighted centroid)."""

    if not polygon:
        raise ValueError("Cannot compute the centroid of an empty polygon")
    count = len(polygon)
    return Point(
        sum(vertex.latitude for vertex in polygon) / count,
        sum(vertex.longitude for vertex in polygon) / count,
    )


@dataclass(slots=True)
class MapRegion:
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float


def bounding_region(points: Sequence[Point], padding: float = 0.1) -> MapRegion:
    """Region that fits every point, widened by `padding` (a fraction of the span)."""

    if not points:
        raise ValueError("At least one point is required to compute a region")
    if len(points) == 1:
        return MapRegion(points[0].latitude, points[0].longitude, DEFAULT_REGION_DELTA, DEFAULT_REGION_DELTA)

    min_lon, min_lat, max_lon, max_lat = MultiPoint([(p.longitude, p.latitude) for p in points]).bounds
    lat_span = max_lat - min_lat
    lon_span = max_lon - min_lon
    return MapRegion(
        latitude=(min_lat + max_lat) / 2,
        longitude=(min_lon + max_lon) / 2,
        latitude_delta=max(lat_span * (1 + padding), DEFAULT_REGION_DELTA / 10),
        longitude_delta=max(lon_span * (1 + padding), DEFAULT_REGION_DELTA / 10),
    )
