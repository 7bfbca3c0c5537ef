"""Geofence request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .routing import PointModel


class ContainsRequest(BaseModel):
    polygon: List[PointModel] = Field(..., description="Geofence vertices; the loop back to the first is implied.")
    points: List[PointModel]


class ContainsResponse(BaseModel):
    inside: List[bool]
    inside_count: int


class CentroidRequest(BaseModel):
    polygon: List[PointModel]


class SurveyFilterRequest(BaseModel):
    geofence: Dict[str, Any] = Field(..., description="GeoJSON Polygon with [lng, lat] positions.")
    surveys: List[Dict[str, Any]] = Field(default_factory=list)


class SurveyFilterResponse(BaseModel):
    surveys: List[Dict[str, Any]]
    total: int
    kept: int
