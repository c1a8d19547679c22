"""
Tests for geofence distance and containment
"""
import math

import pytest

from app.models.work_site import WorkSite
from app.services.geo_validator import (
    EARTH_RADIUS_METERS,
    GeoPoint,
    distance_meters,
    format_distance,
    nearest_site,
    within_radius,
)


def _site(lat, lng, radius=100, site_id=1):
    return WorkSite(id=site_id, company_id=1, name=f"Site {site_id}", latitude=lat, longitude=lng, radius_meters=radius)


@pytest.mark.parametrize("a,b", [
    ((28.6139, 77.2090), (19.0760, 72.8777)),
    ((0.0, 0.0), (0.0, 180.0)),
    ((90.0, 0.0), (-90.0, 0.0)),
    ((-33.8688, 151.2093), (51.5074, -0.1278)),
])
def test_distance_is_symmetric(a, b):
    assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))
    assert distance_meters(*a, *b) >= 0


def test_distance_to_self_is_zero():
    assert distance_meters(28.6139, 77.2090, 28.6139, 77.2090) == 0


def test_antipodal_and_polar_points_do_not_raise():
    half_circumference = math.pi * EARTH_RADIUS_METERS
    assert distance_meters(0, 0, 0, 180) == pytest.approx(half_circumference)
    assert distance_meters(90, 0, -90, 0) == pytest.approx(half_circumference)
    assert distance_meters(90, 10, 90, -170) == pytest.approx(0, abs=1e-6)


def test_known_city_distance():
    # Delhi - Mumbai is roughly 1,150 km great-circle
    assert distance_meters(28.6139, 77.2090, 19.0760, 72.8777) == pytest.approx(1_153_000, rel=0.01)


def test_within_radius_boundary_is_inclusive():
    site = _site(0.0, 0.0, radius=100)
    on_edge = GeoPoint(math.degrees(100 / EARTH_RADIUS_METERS), 0.0)
    assert distance_meters(on_edge.latitude, on_edge.longitude, 0.0, 0.0) == pytest.approx(100)
    inside = GeoPoint(math.degrees(99.9 / EARTH_RADIUS_METERS), 0.0)
    outside = GeoPoint(math.degrees(100.1 / EARTH_RADIUS_METERS), 0.0)
    assert within_radius(inside, site) is True
    assert within_radius(outside, site) is False


def test_nearest_site_picks_closest():
    point = GeoPoint(28.6139, 77.2090)
    far = _site(28.70, 77.20, site_id=1)
    near = _site(28.615, 77.209, site_id=2)
    site, distance = nearest_site(point, [far, near])
    assert site.id == 2
    assert distance < 200
    assert nearest_site(point, []) is None


def test_format_distance():
    assert format_distance(80.4) == "80m"
    assert format_distance(3100) == "3.1km"
