import httpx
import pytest

from fieldroute.models.domain import Point
from fieldroute.services.locations import client as locations_client
from fieldroute.services.locations.client import (
    LocationClient,
    LocationServiceError,
    parse_location,
    parse_route_waypoints,
)

LOCATION_PAYLOAD = {
    "_id": "loc-42",
    "title": " Paddy field ",
    "status": 3,
    "route": [
        {"latitude": "10.1185", "longitude": "76.2482", "place": "Gate", "type": "entrance"},
        {"latitude": 10.1198, "longitude": 76.2501},
        {"latitude": None, "longitude": 76.25},
        {"latitude": "abc", "longitude": "76.25"},
        {"latitude": 95, "longitude": 76.25},
        {"longitude": 76.25},
        {"latitude": 10.1173, "longitude": 76.251, "place": "", "type": "corner"},
    ],
    "geofence": {
        "type": "Polygon",
        "coordinates": [[[76.24, 10.11], [76.26, 10.11], [76.26, 10.13], [76.24, 10.13], [76.24, 10.11]]],
    },
    "centerPoint": {"type": "Point", "coordinates": [76.25, 10.12]},
}


def test_parse_route_waypoints_skips_invalid_entries():
    waypoints = parse_route_waypoints(LOCATION_PAYLOAD["route"])

    assert [waypoint.label for waypoint in waypoints] == ["Gate", "Point 2", "Point 7"]
    assert [waypoint.sequence_hint for waypoint in waypoints] == [0, 1, 6]
    assert waypoints[0].latitude == 10.1185
    assert waypoints[0].kind == "entrance"
    assert waypoints[1].kind == ""
    assert waypoints[2].kind == "corner"


def test_parse_location_reads_geofence_and_center():
    record = parse_location(LOCATION_PAYLOAD)

    assert record.location_id == "loc-42"
    assert record.title == "Paddy field"
    assert record.status == 3
    assert len(record.waypoints) == 3
    assert record.center == Point(10.12, 76.25)
    assert record.geofence is not None
    assert record.geofence.contains(Point(10.12, 76.25))


def test_parse_location_ignores_broken_geofence():
    record = parse_location({**LOCATION_PAYLOAD, "geofence": {"type": "Polygon", "coordinates": [[[76.2, 10.1]]]}})

    assert record.geofence is None


def _client_with(monkeypatch, handler) -> LocationClient:
    real_client = httpx.Client

    def fake_client(*args, **kwargs):
        return real_client(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(locations_client.httpx, "Client", fake_client)
    return LocationClient(base_url="https://locations.test/")


def test_fetch_route_waypoints(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/locations/loc-42"
        return httpx.Response(200, json={"success": True, "data": LOCATION_PAYLOAD})

    client = _client_with(monkeypatch, handler)

    waypoints = client.fetch_route_waypoints("loc-42")

    assert len(waypoints) == 3


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"success": False, "message": "not found"}),
        httpx.Response(200, json={"success": True}),
        httpx.Response(404, json={"message": "missing"}),
        httpx.Response(200, text="not json"),
    ],
)
def test_fetch_location_errors(monkeypatch, response):
    client = _client_with(monkeypatch, lambda request: response)

    with pytest.raises(LocationServiceError):
        client.fetch_location("loc-42")


def test_location_client_requires_url(monkeypatch):
    monkeypatch.setattr(locations_client.settings, "location_service_url", None)

    with pytest.raises(ValueError):
        LocationClient()
