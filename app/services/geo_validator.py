"""
Geofence arithmetic: haversine great-circle distance and radius containment.

Pure functions, no database access.
"""
import math
from typing import Iterable, NamedTuple, Optional, Tuple, Union

from app.models.work_site import WorkSite

EARTH_RADIUS_METERS = 6_371_000.0

Number = Union[int, float]


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


def distance_meters(lat1: Number, lon1: Number, lat2: Number, lon2: Number) -> float:
    """
    Great-circle distance between two points in meters (haversine, spherical earth).

    Symmetric, zero for identical points, and safe for poles and antipodes:
    the haversine term is clamped to [0, 1] so rounding never pushes asin
    outside its domain.
    """
    phi1 = math.radians(float(lat1))
    phi2 = math.radians(float(lat2))
    d_phi = phi2 - phi1
    d_lambda = math.radians(float(lon2) - float(lon1))

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def distance_to_site(point: GeoPoint, site: WorkSite) -> float:
    """Distance from point to the site's center in meters."""
    return distance_meters(point.latitude, point.longitude, site.latitude, site.longitude)


def within_radius(point: GeoPoint, site: WorkSite) -> bool:
    """True when the point lies inside or exactly on the site's geofence."""
    return distance_to_site(point, site) <= float(site.radius_meters)


def nearest_site(point: GeoPoint, sites: Iterable[WorkSite]) -> Optional[Tuple[WorkSite, float]]:
    """(site, distance) of the closest site, or None for an empty iterable."""
    best = None
    for site in sites:
        d = distance_to_site(point, site)
        if best is None or d < best[1]:
            best = (site, d)
    return best


def format_distance(meters: float) -> str:
    """Human-readable distance: '80m' below a kilometre, '3.1km' above."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
