"""Domain models for survey locations, waypoints and geofences."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from shapely.geometry import Polygon, mapping


class InvalidCoordinateError(ValueError):
    """Raised when a latitude/longitude pair falls outside the valid range."""


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Reject coordinates that are non-numeric, NaN or outside the WGS84 range."""

    if isinstance(latitude, bool) or isinstance(longitude, bool):
        raise InvalidCoordinateError(f"Coordinates must be numeric, got ({latitude!r}, {longitude!r})")
    if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
        raise InvalidCoordinateError(f"Coordinates must be numeric, got ({latitude!r}, {longitude!r})")
    if math.isnan(latitude) or math.isnan(longitude):
        raise InvalidCoordinateError("Coordinates must not be NaN")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinateError(f"Latitude {latitude} is outside [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinateError(f"Longitude {longitude} is outside [-180, 180]")


@dataclass(frozen=True, slots=True)
class Point:
    """A WGS84 coordinate."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        validate_coordinates(self.latitude, self.longitude)

    def as_query(self) -> str:
        """Render as the `lat,lng` form used in directions requests."""
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class Waypoint:
    """One stop of a location's surveyed route."""

    latitude: float
    longitude: float
    label: str = ""
    kind: str = ""
    sequence_hint: Optional[int] = None

    def __post_init__(self) -> None:
        validate_coordinates(self.latitude, self.longitude)

    @property
    def point(self) -> Point:
        return Point(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Geofence:
    """Closed polygon used for membership tests.

    The ring is implicitly closed; a trailing vertex equal to the first one is
    dropped on construction so the stored ring never repeats itself.
    """

    vertices: tuple[Point, ...]

    def __post_init__(self) -> None:
        vertices = tuple(self.vertices)
        if len(vertices) > 1 and vertices[0] == vertices[-1]:
            vertices = vertices[:-1]
        if len(vertices) < 3:
            raise ValueError(f"Geofence requires at least 3 distinct vertices, got {len(vertices)}")
        object.__setattr__(self, "vertices", vertices)

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> "Geofence":
        return cls(vertices=tuple(points))

    @classmethod
    def from_geojson(cls, geometry: dict[str, Any]) -> "Geofence":
        """Build from a GeoJSON Polygon; the outer ring is `[lng, lat]` pairs."""

        if geometry.get("type") != "Polygon":
            raise ValueError(f"Unsupported geofence geometry type: {geometry.get('type')!r}")
        rings = geometry.get("coordinates") or []
        if not rings or not rings[0]:
            raise ValueError("Geofence polygon has no outer ring")
        points: list[Point] = []
        for position in rings[0]:
            if len(position) < 2:
                raise ValueError(f"Invalid GeoJSON position: {position!r}")
            lng, lat = position[0], position[1]
            points.append(Point(float(lat), float(lng)))
        return cls.from_points(points)

    def contains(self, point: Point) -> bool:
        from ..services.geospatial import point_in_polygon

        return point_in_polygon(point, self.vertices)

    def centroid(self) -> Point:
        from ..services.geospatial import polygon_centroid

        return polygon_centroid(self.vertices)

    def to_shapely(self) -> Polygon:
        return Polygon([(vertex.longitude, vertex.latitude) for vertex in self.vertices])

    def is_simple(self) -> bool:
        """Return False for self-intersecting rings, which make membership ambiguous."""
        return self.to_shapely().is_valid

    def to_geojson(self) -> dict[str, Any]:
        geometry = mapping(self.to_shapely())
        return {
            "type": geometry["type"],
            "coordinates": [[list(position) for position in ring] for ring in geometry["coordinates"]],
        }


@dataclass(slots=True)
class LocationRecord:
    """Location as returned by the location service."""

    location_id: str
    title: str
    status: Optional[int]
    waypoints: list[Waypoint] = field(default_factory=list)
    geofence: Optional[Geofence] = None
    center: Optional[Point] = None
    raw: dict = field(default_factory=dict)
