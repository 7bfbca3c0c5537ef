"""HTTP client for the external walking-directions service."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx
from pydantic import ValidationError

from ...config import settings
from ...models.domain import Point
from .models import DirectionsApiResponse

logger = logging.getLogger(__name__)


class DirectionsUnavailableError(RuntimeError):
    """The directions service answered but could not provide an optimized route."""


def build_directions_params(
    origin: Point,
    destination: Point,
    intermediates: Sequence[Point],
    mode: str,
    api_key: str | None = None,
) -> dict[str, str]:
    params = {
        "origin": origin.as_query(),
        "destination": destination.as_query(),
        "mode": mode,
    }
    if intermediates:
        params["waypoints"] = "optimize:true|" + "|".join(point.as_query() for point in intermediates)
    if api_key:
        params["key"] = api_key
    return params


class DirectionsClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = base_url or settings.directions_base_url
        if not self.base_url:
            raise ValueError("Directions base URL is not configured.")
        self.api_key = api_key if api_key is not None else settings.directions_api_key
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        )

    def _get_client(self) -> httpx.Client:
        """Fresh client per request; requests run on worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
        )

    def fetch_optimized_route(
        self,
        origin: Point,
        destination: Point,
        intermediates: Sequence[Point],
        mode: str | None = None,
    ) -> DirectionsApiResponse:
        """Request a route through `intermediates` with waypoint optimization enabled.

        Raises:
            DirectionsUnavailableError: status other than OK, no routes, or a
                payload that does not match the expected shape.
            ConnectionError: the service could not be reached after retries.
        """
        params = build_directions_params(
            origin, destination, intermediates, mode or settings.directions_mode, self.api_key
        )

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(self.base_url, params=params)
                    response.raise_for_status()
                    payload = response.json()
                    break
                except httpx.HTTPStatusError as exc:
                    attempt += 1
                    if attempt > self.max_retries or exc.response.status_code < 500:
                        raise DirectionsUnavailableError(
                            f"Directions service returned HTTP {exc.response.status_code}"
                        ) from exc
                    time.sleep(self.backoff_seconds * (2 ** (attempt - 1)))
                except httpx.TimeoutException as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning("Directions request timed out after %d attempts: %s", attempt, exc)
                        raise ConnectionError(f"Directions request timed out: {exc}") from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        "Directions timeout, retrying in %.1fs (attempt %d/%d)", wait_time, attempt, self.max_retries
                    )
                    time.sleep(wait_time)
                except (httpx.NetworkError, OSError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to directions service at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        "Directions network error, retrying in %.1fs (attempt %d/%d): %s",
                        wait_time,
                        attempt,
                        self.max_retries,
                        exc,
                    )
                    time.sleep(wait_time)
                except ValueError as exc:
                    raise DirectionsUnavailableError(f"Directions response is not valid JSON: {exc}") from exc
        finally:
            client.close()

        return parse_directions_response(payload)


def parse_directions_response(payload: object) -> DirectionsApiResponse:
    try:
        parsed = DirectionsApiResponse.model_validate(payload)
    except ValidationError as exc:
        raise DirectionsUnavailableError(f"Malformed directions response: {exc}") from exc
    if parsed.status != "OK":
        detail = f": {parsed.error_message}" if parsed.error_message else ""
        raise DirectionsUnavailableError(f"Directions service returned status {parsed.status}{detail}")
    if not parsed.routes:
        raise DirectionsUnavailableError("Directions service returned no routes.")
    return parsed


def check_health(base_url: str | None = None) -> bool:
    """Probe the directions service with a minimal two-point request."""

    base = base_url or settings.directions_base_url
    if not base:
        return False
    try:
        client = DirectionsClient(base_url=base, timeout=5.0, max_retries=0)
        client.fetch_optimized_route(
            Point(52.517037, 13.388860),
            Point(52.496891, 13.385983),
            [],
        )
        return True
    except (DirectionsUnavailableError, ConnectionError, httpx.HTTPError) as exc:
        logger.info("Directions health check failed: %s", exc)
        return False
