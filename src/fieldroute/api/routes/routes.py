"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import DisplayRouteRequest, DisplayRouteResponse
from ...services.locations.client import LocationServiceError
from ...services.routing.service import display_route, display_route_for_location, interim_route

router = APIRouter(tags=["routes"])


@router.post("/routes/display", response_model=DisplayRouteResponse, status_code=status.HTTP_200_OK)
def compute_display(payload: DisplayRouteRequest) -> DisplayRouteResponse:
    try:
        return display_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error computing display route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compute route: {str(exc)}"
        ) from exc


@router.post("/routes/interim", response_model=DisplayRouteResponse, status_code=status.HTTP_200_OK)
def compute_interim(payload: DisplayRouteRequest) -> DisplayRouteResponse:
    """Straight-line route in the given order, without contacting the directions service."""
    try:
        return interim_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/locations/{location_id}/route", response_model=DisplayRouteResponse, status_code=status.HTTP_200_OK)
def location_route(location_id: str) -> DisplayRouteResponse:
    try:
        return display_route_for_location(location_id)
    except LocationServiceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error computing route for location {location_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compute route: {str(exc)}"
        ) from exc
