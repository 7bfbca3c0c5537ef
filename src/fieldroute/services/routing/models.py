"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ...models.domain import Point, Waypoint


class RouteSource(str, Enum):
    EXTERNAL = "EXTERNAL"
    FALLBACK_TSP = "FALLBACK_TSP"


@dataclass(slots=True)
class DirectionsResult:
    ordered_waypoints: List[Waypoint]
    path_polyline: List[Point]
    total_distance_meters: float
    total_duration_seconds: float
    source: RouteSource
    degraded: bool = False
    insufficient_points: bool = False
    interim: bool = False
    location_id: Optional[str] = None
    notes: List[str] = field(default_factory=list)


# Directions service wire format, validated once at the client boundary.


class PolylineModel(BaseModel):
    points: str = ""


class ValueModel(BaseModel):
    value: float = 0.0
    text: Optional[str] = None


class StepModel(BaseModel):
    polyline: Optional[PolylineModel] = None


class LegModel(BaseModel):
    distance: Optional[ValueModel] = None
    duration: Optional[ValueModel] = None
    steps: List[StepModel] = Field(default_factory=list)


class DirectionsRouteModel(BaseModel):
    waypoint_order: List[int] = Field(default_factory=list)
    legs: List[LegModel] = Field(default_factory=list)
    overview_polyline: Optional[PolylineModel] = None


class DirectionsApiResponse(BaseModel):
    status: str
    routes: List[DirectionsRouteModel] = Field(default_factory=list)
    error_message: Optional[str] = None
