"""Geofence endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...models.domain import Geofence, Point
from ...schemas.geofence import (
    CentroidRequest,
    ContainsRequest,
    ContainsResponse,
    SurveyFilterRequest,
    SurveyFilterResponse,
)
from ...schemas.routing import PointModel
from ...services.geofence.service import filter_surveys_in_geofence
from ...services.geospatial import point_in_polygon, polygon_centroid

router = APIRouter(prefix="/geofence", tags=["geofence"])


def _points(models: list[PointModel]) -> list[Point]:
    return [Point(model.latitude, model.longitude) for model in models]


@router.post("/contains", response_model=ContainsResponse, status_code=status.HTTP_200_OK)
def contains(payload: ContainsRequest) -> ContainsResponse:
    polygon = _points(payload.polygon)
    try:
        inside = [point_in_polygon(point, polygon) for point in _points(payload.points)]
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ContainsResponse(inside=inside, inside_count=sum(inside))


@router.post("/centroid", response_model=PointModel, status_code=status.HTTP_200_OK)
def centroid(payload: CentroidRequest) -> PointModel:
    try:
        center = polygon_centroid(_points(payload.polygon))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PointModel(latitude=center.latitude, longitude=center.longitude)


@router.post("/surveys", response_model=SurveyFilterResponse, status_code=status.HTTP_200_OK)
def filter_surveys(payload: SurveyFilterRequest) -> SurveyFilterResponse:
    try:
        geofence = Geofence.from_geojson(payload.geofence)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid geofence: {exc}") from exc
    kept = filter_surveys_in_geofence(payload.surveys, geofence)
    return SurveyFilterResponse(surveys=kept, total=len(payload.surveys), kept=len(kept))
