import math

import pytest

from fieldroute.models.domain import Geofence, InvalidCoordinateError, Point
from fieldroute.services.geospatial import (
    bounding_region,
    haversine_km,
    point_in_polygon,
    polygon_centroid,
)

UNIT_SQUARE = [Point(0, 0), Point(0, 1), Point(1, 1), Point(1, 0)]


def test_haversine_is_symmetric_and_zero_on_identity():
    a = Point(21.5, 39.2)
    b = Point(21.55, 39.25)

    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))
    assert haversine_km(a, a) == 0.0


def test_haversine_one_degree_of_longitude_on_equator():
    distance = haversine_km(Point(0, 0), Point(0, 1))

    assert distance == pytest.approx(6371.0 * math.pi / 180, rel=1e-9)


@pytest.mark.parametrize("lat, lon", [(91, 0), (-90.5, 0), (0, 180.01), (0, -181), (float("nan"), 0)])
def test_point_rejects_out_of_range_coordinates(lat, lon):
    with pytest.raises(InvalidCoordinateError):
        Point(lat, lon)


def test_point_in_unit_square():
    assert point_in_polygon(Point(0.5, 0.5), UNIT_SQUARE) is True
    assert point_in_polygon(Point(2, 2), UNIT_SQUARE) is False


def test_point_in_concave_polygon():
    # U shape opening to the north: the notch between the arms is outside.
    polygon = [
        Point(0, 0),
        Point(0, 3),
        Point(3, 3),
        Point(3, 2),
        Point(1, 2),
        Point(1, 1),
        Point(3, 1),
        Point(3, 0),
    ]

    assert point_in_polygon(Point(0.5, 1.5), polygon) is True
    assert point_in_polygon(Point(2, 1.5), polygon) is False
    assert point_in_polygon(Point(2, 2.5), polygon) is True


def test_point_in_polygon_requires_three_vertices():
    with pytest.raises(ValueError):
        point_in_polygon(Point(0, 0), [Point(0, 0), Point(1, 1)])


def test_polygon_centroid_is_vertex_mean():
    center = polygon_centroid(UNIT_SQUARE)

    assert center.latitude == pytest.approx(0.5)
    assert center.longitude == pytest.approx(0.5)


def test_polygon_centroid_is_not_area_weighted():
    # Extra vertices along one edge pull the mean toward it.
    polygon = [Point(0, 0), Point(0, 0.5), Point(0, 1), Point(1, 1), Point(1, 0)]

    assert polygon_centroid(polygon).latitude == pytest.approx(0.4)


def test_polygon_centroid_rejects_empty_polygon():
    with pytest.raises(ValueError):
        polygon_centroid([])


def test_geofence_drops_repeated_closing_vertex():
    fence = Geofence.from_points([*UNIT_SQUARE, UNIT_SQUARE[0]])

    assert len(fence.vertices) == 4
    assert fence.contains(Point(0.25, 0.75))
    assert not fence.contains(Point(-0.1, 0.5))


def test_geofence_requires_three_distinct_vertices():
    with pytest.raises(ValueError):
        Geofence.from_points([Point(0, 0), Point(1, 1), Point(0, 0)])


def test_geofence_from_geojson_reads_lng_lat_order():
    geometry = {
        "type": "Polygon",
        "coordinates": [[[76.24, 10.11], [76.26, 10.11], [76.26, 10.13], [76.24, 10.13], [76.24, 10.11]]],
    }

    fence = Geofence.from_geojson(geometry)

    assert fence.vertices[0] == Point(10.11, 76.24)
    assert fence.contains(Point(10.12, 76.25))
    center = fence.centroid()
    assert center.latitude == pytest.approx(10.12)
    assert center.longitude == pytest.approx(76.25)


def test_geofence_round_trips_through_geojson():
    fence = Geofence.from_points(UNIT_SQUARE)
    geometry = fence.to_geojson()

    assert geometry["type"] == "Polygon"
    ring = geometry["coordinates"][0]
    assert ring[0] == ring[-1]
    assert Geofence.from_geojson(geometry) == fence


def test_geofence_detects_self_intersection():
    bowtie = Geofence.from_points([Point(0, 0), Point(1, 1), Point(0, 1), Point(1, 0)])

    assert Geofence.from_points(UNIT_SQUARE).is_simple()
    assert not bowtie.is_simple()


def test_bounding_region_single_point_uses_default_delta():
    region = bounding_region([Point(10.118542, 76.248265)])

    assert region.latitude == 10.118542
    assert region.latitude_delta == 0.05
    assert region.longitude_delta == 0.05


def test_bounding_region_covers_all_points():
    region = bounding_region([Point(10.0, 76.0), Point(10.2, 76.4)], padding=0.5)

    assert region.latitude == pytest.approx(10.1)
    assert region.longitude == pytest.approx(76.2)
    assert region.latitude_delta == pytest.approx(0.3)
    assert region.longitude_delta == pytest.approx(0.6)
