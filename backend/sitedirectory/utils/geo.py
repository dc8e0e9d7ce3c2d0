"""Shared geospatial utilities."""

from math import radians, cos, sin, asin, sqrt

from pydantic import BaseModel

EARTH_RADIUS_MILES = 3959
MILES_PER_DEGREE_LAT = 69

# cos(lat) floor so the longitude delta stays finite at the poles
_MIN_COS_LAT = 1e-12
_MAX_LNG_DELTA = 180.0


class BoundingBox(BaseModel):
    """Rectangular lat/lng pre-filter around a search point."""
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great circle distance in miles between two points on earth.

    Args:
        lat1: Latitude of point 1 (decimal degrees)
        lon1: Longitude of point 1 (decimal degrees)
        lat2: Latitude of point 2 (decimal degrees)
        lon2: Longitude of point 2 (decimal degrees)

    Returns:
        Distance in miles.
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(min(1.0, sqrt(a)))
    return c * EARTH_RADIUS_MILES


def bounding_box(lat: float, lng: float, radius_miles: float) -> BoundingBox:
    """Coarse box that fully contains the circle of `radius_miles` around a point.

    Only a pre-filter: corners outside the circle are removed by an exact
    distance check afterwards.
    """
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    cos_lat = max(abs(cos(radians(lat))), _MIN_COS_LAT)
    lng_delta = min(radius_miles / (MILES_PER_DEGREE_LAT * cos_lat), _MAX_LNG_DELTA)
    return BoundingBox(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lng=lng - lng_delta,
        max_lng=lng + lng_delta,
    )
