"""Display-route orchestration: external optimized directions with a local TSP fallback.

A computation always yields something drawable. The straight-line loop over the
waypoints is available as soon as the computation is created; the optimized
route replaces it once the directions service answers, or the local solver's
order replaces it when the service fails.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import Point, Waypoint
from ..geospatial import haversine_km
from .directions_client import DirectionsUnavailableError
from .models import DirectionsApiResponse, DirectionsResult, DirectionsRouteModel, RouteSource
from .polyline import decode_polyline
from .tsp import solve_tsp

# Extra wait on top of the HTTP timeout before a blocking caller gives up.
RESULT_WAIT_MARGIN_SECONDS = 2.0

logger = logging.getLogger(__name__)


class DirectionsService(Protocol):
    def fetch_optimized_route(
        self,
        origin: Point,
        destination: Point,
        intermediates: Sequence[Point],
        mode: str | None = None,
    ) -> DirectionsApiResponse:
        ...


class CancellationToken:
    """Set once the consumer of a computation goes away."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class RouteComputation:
    """Handle for one display-route request.

    `interim` is ready immediately. `result()` waits for the final route and
    returns None once the computation has been cancelled.
    """

    def __init__(
        self,
        interim: DirectionsResult,
        future: "Future[DirectionsResult]",
        token: CancellationToken,
    ) -> None:
        self.interim = interim
        self._future = future
        self.token = token

    @property
    def cancelled(self) -> bool:
        # A future dropped by executor shutdown counts as cancelled too.
        return self.token.cancelled or self._future.cancelled()

    def done(self) -> bool:
        return self._future.done()

    @property
    def current(self) -> DirectionsResult:
        if self.cancelled or not self._future.done():
            return self.interim
        return self._future.result()

    def result(self, timeout: float | None = None) -> Optional[DirectionsResult]:
        if self.cancelled:
            return None
        try:
            result = self._future.result(timeout=timeout)
        except concurrent.futures.CancelledError:
            return None
        if self.token.cancelled:
            return None
        return result

    def cancel(self) -> None:
        self.token.cancel()
        self._future.cancel()


def direct_path(waypoints: Sequence[Waypoint]) -> list[Point]:
    """Straight segments through the waypoints in order, closed back to the first."""

    if not waypoints:
        return []
    points = [waypoint.point for waypoint in waypoints]
    if len(points) > 1:
        points.append(points[0])
    return points


def path_length_km(path: Sequence[Point]) -> float:
    return sum(haversine_km(a, b) for a, b in zip(path, path[1:]))


class DirectionsCoordinator:
    def __init__(
        self,
        directions_service: DirectionsService,
        executor: ThreadPoolExecutor | None = None,
        mode: str | None = None,
        walking_speed_kmh: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.directions_service = directions_service
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=settings.coordinator_max_workers, thread_name_prefix="directions"
        )
        self.mode = mode or settings.directions_mode
        self.walking_speed_kmh = walking_speed_kmh or settings.walking_speed_kmh
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds

    def __enter__(self) -> "DirectionsCoordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False, cancel_futures=True)

    def _estimate_duration_seconds(self, distance_km: float) -> float:
        return distance_km / self.walking_speed_kmh * 3600.0

    def _straight_line_result(
        self,
        location_id: str | None,
        ordered: list[Waypoint],
        **flags,
    ) -> DirectionsResult:
        path = direct_path(ordered)
        distance_km = path_length_km(path)
        return DirectionsResult(
            ordered_waypoints=ordered,
            path_polyline=path,
            total_distance_meters=distance_km * 1000.0,
            total_duration_seconds=self._estimate_duration_seconds(distance_km),
            source=RouteSource.FALLBACK_TSP,
            location_id=location_id,
            **flags,
        )

    def interim_result(self, location_id: str | None, waypoints: Sequence[Waypoint]) -> DirectionsResult:
        """Direct-path result in the received order; needs no network."""
        return self._straight_line_result(location_id, list(waypoints), interim=True)

    def fallback_result(
        self, location_id: str | None, waypoints: Sequence[Waypoint], reason: str | None = None
    ) -> DirectionsResult:
        tour = solve_tsp([waypoint.point for waypoint in waypoints])
        ordered = [waypoints[index] for index in tour]
        result = self._straight_line_result(location_id, ordered, degraded=True)
        if reason:
            result.notes.append(reason)
        return result

    def _external_result(
        self,
        location_id: str | None,
        waypoints: Sequence[Waypoint],
        response: DirectionsApiResponse,
    ) -> DirectionsResult:
        if response.status != "OK":
            raise DirectionsUnavailableError(f"Directions service returned status {response.status}")
        if not response.routes:
            raise DirectionsUnavailableError("Directions service returned no routes.")
        route = response.routes[0]
        order = list(route.waypoint_order)
        intermediate_count = len(waypoints) - 1
        if sorted(order) != list(range(intermediate_count)):
            raise DirectionsUnavailableError(
                f"Invalid waypoint order {order} for {intermediate_count} intermediate waypoints."
            )

        ordered = [waypoints[0], *(waypoints[index + 1] for index in order)]
        path = _decode_route_path(route)
        total_distance = sum(leg.distance.value for leg in route.legs if leg.distance)
        total_duration = sum(leg.duration.value for leg in route.legs if leg.duration)

        if not path:
            logger.warning("Directions for location %s carried no polyline; drawing straight segments", location_id)
            result = self._straight_line_result(location_id, ordered, degraded=True)
            result.source = RouteSource.EXTERNAL
            result.notes.append("Directions response had no path geometry.")
            if total_distance:
                result.total_distance_meters = total_distance
                result.total_duration_seconds = total_duration
            return result

        return DirectionsResult(
            ordered_waypoints=ordered,
            path_polyline=path,
            total_distance_meters=total_distance,
            total_duration_seconds=total_duration,
            source=RouteSource.EXTERNAL,
            location_id=location_id,
        )

    def _resolve(self, location_id: str | None, waypoints: list[Waypoint], token: CancellationToken) -> DirectionsResult:
        start_time = time.time()
        origin = waypoints[0].point
        try:
            response = self.directions_service.fetch_optimized_route(
                origin,
                origin,
                [waypoint.point for waypoint in waypoints[1:]],
                self.mode,
            )
            result = self._external_result(location_id, waypoints, response)
        except Exception as exc:
            logger.warning(
                "Directions unavailable for location %s (%s: %s). Using local TSP fallback.",
                location_id,
                type(exc).__name__,
                exc,
            )
            result = self.fallback_result(location_id, waypoints, reason=f"Directions unavailable: {exc}")

        elapsed = time.time() - start_time
        if token.cancelled:
            logger.info("Discarding route for location %s: request was cancelled", location_id)
        else:
            logger.info(
                "Route for location %s resolved from %s in %.2fs (%d waypoints)",
                location_id,
                result.source.value,
                elapsed,
                len(result.ordered_waypoints),
            )
        return result

    def compute_display_route(
        self,
        location_id: str | None,
        waypoints: Sequence[Waypoint],
        *,
        on_update: Callable[[DirectionsResult], None] | None = None,
        token: CancellationToken | None = None,
    ) -> RouteComputation:
        token = token or CancellationToken()
        waypoints = list(waypoints)

        if len(waypoints) < 2:
            result = DirectionsResult(
                ordered_waypoints=waypoints,
                path_polyline=[],
                total_distance_meters=0.0,
                total_duration_seconds=0.0,
                source=RouteSource.FALLBACK_TSP,
                insufficient_points=True,
                location_id=location_id,
                notes=["Not enough waypoints to draw a route."],
            )
            future: Future[DirectionsResult] = Future()
            future.set_result(result)
            return RouteComputation(interim=result, future=future, token=token)

        interim = self.interim_result(location_id, waypoints)
        try:
            future = self.executor.submit(self._resolve, location_id, waypoints, token)
        except RuntimeError as exc:
            logger.warning("Coordinator executor unavailable for location %s (%s); solving locally", location_id, exc)
            future = Future()
            future.set_result(
                self.fallback_result(location_id, waypoints, reason="Directions coordinator is closed.")
            )
        if on_update is not None:

            def _notify(done: Future[DirectionsResult]) -> None:
                if token.cancelled or done.cancelled():
                    return
                on_update(done.result())

            future.add_done_callback(_notify)
        return RouteComputation(interim=interim, future=future, token=token)

    def compute_display_route_blocking(
        self, location_id: str | None, waypoints: Sequence[Waypoint]
    ) -> DirectionsResult:
        """Final route for callers that cannot render the interim result."""

        computation = self.compute_display_route(location_id, waypoints)
        try:
            result = computation.result(timeout=self.timeout + RESULT_WAIT_MARGIN_SECONDS)
        except concurrent.futures.TimeoutError:
            computation.cancel()
            logger.warning("Directions for location %s exceeded %.1fs; using local TSP fallback", location_id, self.timeout)
            return self.fallback_result(location_id, waypoints, reason="Directions request timed out.")
        return result if result is not None else computation.interim


def _decode_route_path(route: DirectionsRouteModel) -> list[Point]:
    path: list[Point] = []
    for leg in route.legs:
        for step in leg.steps:
            if step.polyline and step.polyline.points:
                path.extend(decode_polyline(step.polyline.points))
    if not path and route.overview_polyline and route.overview_polyline.points:
        path = decode_polyline(route.overview_polyline.points)
    return path
