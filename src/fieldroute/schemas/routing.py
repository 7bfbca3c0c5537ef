"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Waypoint


class PointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WaypointModel(PointModel):
    label: str = ""
    kind: str = ""
    sequence_hint: Optional[int] = None

    def to_domain(self) -> Waypoint:
        return Waypoint(
            latitude=self.latitude,
            longitude=self.longitude,
            label=self.label,
            kind=self.kind,
            sequence_hint=self.sequence_hint,
        )


class DisplayRouteRequest(BaseModel):
    location_id: Optional[str] = Field(default=None, description="Location the waypoints belong to.")
    waypoints: List[WaypointModel] = Field(default_factory=list)


class DisplayRouteResponse(BaseModel):
    location_id: Optional[str]
    source: str
    degraded: bool
    insufficient_points: bool
    interim: bool
    total_distance_meters: float
    total_duration_seconds: float
    distance_text: str
    duration_text: str
    ordered_waypoints: List[WaypointModel]
    path: List[List[float]]
    encoded_path: str
    notes: List[str] = Field(default_factory=list)
