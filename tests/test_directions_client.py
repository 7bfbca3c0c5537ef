import httpx
import pytest

from fieldroute.models.domain import Point
from fieldroute.services.routing import directions_client
from fieldroute.services.routing.directions_client import (
    DirectionsClient,
    DirectionsUnavailableError,
    build_directions_params,
    parse_directions_response,
)

ORIGIN = Point(10.1185, 76.2482)
STOPS = [Point(10.1198, 76.2501), Point(10.1173, 76.251)]


def _client_with(monkeypatch, handler, **kwargs) -> DirectionsClient:
    client = DirectionsClient(base_url="https://directions.test/json", api_key="secret", backoff_seconds=0, **kwargs)
    monkeypatch.setattr(client, "_get_client", lambda: httpx.Client(transport=httpx.MockTransport(handler)))
    return client


def test_build_params_requests_optimized_loop():
    params = build_directions_params(ORIGIN, ORIGIN, STOPS, "walking", "secret")

    assert params == {
        "origin": "10.1185,76.2482",
        "destination": "10.1185,76.2482",
        "mode": "walking",
        "waypoints": "optimize:true|10.1198,76.2501|10.1173,76.251",
        "key": "secret",
    }


def test_build_params_without_intermediates_or_key():
    params = build_directions_params(ORIGIN, STOPS[0], [], "walking")

    assert "waypoints" not in params
    assert "key" not in params


def test_fetch_optimized_route_parses_response(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "routes": [
                    {
                        "waypoint_order": [1, 0],
                        "legs": [{"distance": {"value": 250, "text": "0.3 km"}, "duration": {"value": 200}}],
                        "overview_polyline": {"points": "_p~iF~ps|U"},
                    }
                ],
            },
        )

    client = _client_with(monkeypatch, handler)
    response = client.fetch_optimized_route(ORIGIN, ORIGIN, STOPS, "walking")

    assert seen["mode"] == "walking"
    assert seen["waypoints"].startswith("optimize:true|")
    assert response.routes[0].waypoint_order == [1, 0]
    assert response.routes[0].legs[0].distance.value == 250


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "ZERO_RESULTS", "routes": []},
        {"status": "OK", "routes": []},
        {"status": "REQUEST_DENIED", "error_message": "bad key"},
        {"routes": []},
    ],
)
def test_unusable_payload_raises_unavailable(payload):
    with pytest.raises(DirectionsUnavailableError):
        parse_directions_response(payload)


def test_client_error_status_is_not_retried(monkeypatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403, json={"error": "forbidden"})

    client = _client_with(monkeypatch, handler, max_retries=3)

    with pytest.raises(DirectionsUnavailableError):
        client.fetch_optimized_route(ORIGIN, ORIGIN, STOPS)
    assert len(calls) == 1


def test_network_errors_are_retried_then_raised(monkeypatch):
    calls = []
    monkeypatch.setattr(directions_client.time, "sleep", lambda seconds: None)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = _client_with(monkeypatch, handler, max_retries=2)

    with pytest.raises(ConnectionError):
        client.fetch_optimized_route(ORIGIN, ORIGIN, STOPS)
    assert len(calls) == 3


def test_server_errors_back_off_exponentially(monkeypatch):
    calls = []
    sleeps = []
    monkeypatch.setattr(directions_client.time, "sleep", sleeps.append)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    client = DirectionsClient(base_url="https://directions.test/json", max_retries=3, backoff_seconds=0.5)
    monkeypatch.setattr(client, "_get_client", lambda: httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(DirectionsUnavailableError):
        client.fetch_optimized_route(ORIGIN, ORIGIN, STOPS)
    assert len(calls) == 4
    assert sleeps == [0.5, 1.0, 2.0]


def test_invalid_json_raises_unavailable(monkeypatch):
    client = _client_with(monkeypatch, lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(DirectionsUnavailableError):
        client.fetch_optimized_route(ORIGIN, ORIGIN, STOPS)


def test_check_health_reports_failure(monkeypatch):
    def failing(self, *args, **kwargs):
        raise ConnectionError("unreachable")

    monkeypatch.setattr(DirectionsClient, "fetch_optimized_route", failing)

    assert directions_client.check_health("https://directions.test/json") is False
