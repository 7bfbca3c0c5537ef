"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Waypoint
from ...schemas.routing import DisplayRouteRequest, DisplayRouteResponse
from ..locations.client import LocationClient
from ..outputs.formatter import directions_result_to_json
from .coordinator import DirectionsCoordinator
from .directions_client import DirectionsClient
from .models import DirectionsResult

logger = logging.getLogger(__name__)


def _to_response(result: DirectionsResult) -> DisplayRouteResponse:
    return DisplayRouteResponse.model_validate(directions_result_to_json(result))


def _waypoints_from_payload(payload: DisplayRouteRequest) -> list[Waypoint]:
    return [waypoint.to_domain() for waypoint in payload.waypoints]


class _UnconfiguredDirections:
    def __init__(self, reason: str) -> None:
        self.reason = reason

    def fetch_optimized_route(self, origin, destination, intermediates, mode=None):
        raise ConnectionError(self.reason)


def _directions_service():
    try:
        return DirectionsClient()
    except ValueError as exc:
        logger.warning("Directions client unavailable (%s); solving locally", exc)
        return _UnconfiguredDirections(str(exc))


def _resolve_route(location_id: str | None, waypoints: Sequence[Waypoint]) -> DirectionsResult:
    with DirectionsCoordinator(directions_service=_directions_service()) as coordinator:
        return coordinator.compute_display_route_blocking(location_id, waypoints)


def display_route(payload: DisplayRouteRequest) -> DisplayRouteResponse:
    waypoints = _waypoints_from_payload(payload)
    result = _resolve_route(payload.location_id, waypoints)
    logger.info(
        "Display route for %s: %d waypoints, source=%s, degraded=%s",
        payload.location_id,
        len(result.ordered_waypoints),
        result.source.value,
        result.degraded,
    )
    return _to_response(result)


def interim_route(payload: DisplayRouteRequest) -> DisplayRouteResponse:
    waypoints = _waypoints_from_payload(payload)
    with DirectionsCoordinator(directions_service=_UnconfiguredDirections("interim only")) as coordinator:
        if len(waypoints) < 2:
            result = coordinator.compute_display_route(payload.location_id, waypoints).interim
        else:
            result = coordinator.interim_result(payload.location_id, waypoints)
    return _to_response(result)


def display_route_for_location(location_id: str) -> DisplayRouteResponse:
    waypoints = LocationClient().fetch_route_waypoints(location_id)
    if not waypoints:
        raise ValueError(f"No valid route data available for location '{location_id}'.")
    return _to_response(_resolve_route(location_id, waypoints))
