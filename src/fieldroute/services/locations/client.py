"""Client for the location service and parsing of its route payloads."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx

from ...config import settings
from ...models.domain import Geofence, InvalidCoordinateError, LocationRecord, Point, Waypoint

logger = logging.getLogger(__name__)


class LocationServiceError(RuntimeError):
    """The location service could not return usable location data."""


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def parse_route_waypoints(entries: Iterable[dict[str, Any]]) -> list[Waypoint]:
    """Turn `data.route[]` entries into waypoints, skipping unusable coordinates."""

    waypoints: list[Waypoint] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("Skipping route entry %d: expected an object, got %s", index, type(entry).__name__)
            continue
        lat = _coerce_float(entry.get("latitude"))
        lon = _coerce_float(entry.get("longitude"))
        if lat is None or lon is None:
            logger.warning("Skipping route entry %d: missing or non-numeric coordinates", index)
            continue
        try:
            waypoints.append(
                Waypoint(
                    latitude=lat,
                    longitude=lon,
                    label=str(entry.get("place") or "").strip() or f"Point {index + 1}",
                    kind=str(entry.get("type") or "").strip(),
                    sequence_hint=index,
                )
            )
        except InvalidCoordinateError as exc:
            logger.warning("Skipping route entry %d: %s", index, exc)
    return waypoints


def _parse_center(payload: Any) -> Optional[Point]:
    if not isinstance(payload, dict):
        return None
    coordinates = payload.get("coordinates") or []
    if len(coordinates) < 2:
        return None
    lng, lat = _coerce_float(coordinates[0]), _coerce_float(coordinates[1])
    if lat is None or lng is None:
        return None
    try:
        return Point(lat, lng)
    except InvalidCoordinateError:
        return None


def parse_location(payload: dict[str, Any]) -> LocationRecord:
    """Parse the `data` object of a location response."""

    geofence = None
    geofence_payload = payload.get("geofence")
    if isinstance(geofence_payload, dict) and geofence_payload.get("coordinates"):
        try:
            geofence = Geofence.from_geojson(geofence_payload)
        except ValueError as exc:
            logger.warning("Ignoring invalid geofence on location %s: %s", payload.get("_id"), exc)

    return LocationRecord(
        location_id=str(payload.get("_id") or payload.get("id") or ""),
        title=str(payload.get("title") or "").strip(),
        status=payload.get("status") if isinstance(payload.get("status"), int) else None,
        waypoints=parse_route_waypoints(payload.get("route") or []),
        geofence=geofence,
        center=_parse_center(payload.get("centerPoint")),
        raw=payload,
    )


class LocationClient:
    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = (base_url or settings.location_service_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Location service URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.location_timeout_seconds

    def _get(self, path: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise LocationServiceError(
                f"Location service returned HTTP {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LocationServiceError(f"Failed to reach location service at {url}: {exc}") from exc
        except ValueError as exc:
            raise LocationServiceError(f"Location service returned invalid JSON for {url}") from exc

        if not isinstance(body, dict) or not body.get("success"):
            raise LocationServiceError("Location service returned an unsuccessful response.")
        data = body.get("data")
        if not isinstance(data, dict):
            raise LocationServiceError("Location service response is missing the data object.")
        return data

    def fetch_location(self, location_id: str) -> LocationRecord:
        return parse_location(self._get(f"/api/locations/{location_id}"))

    def fetch_route_waypoints(self, location_id: str) -> list[Waypoint]:
        return self.fetch_location(location_id).waypoints
