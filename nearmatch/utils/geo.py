"""Geospatial utilities used for distance calculations."""

from __future__ import annotations

from math import atan2, copysign, cos, floor, isfinite, nan, pi, sin, sqrt

from nearmatch.models import Coordinate

EARTH_RADIUS_KM = 6371.0

CARDINAL_DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def to_radians(degrees: float) -> float:
    """Convert degrees to radians."""

    return degrees * (pi / 180)


def round_half_away(value: float, ndigits: int = 0) -> float:
    """Round to ``ndigits`` decimals with ties going away from zero.

    Python's built-in ``round`` uses banker's rounding, which would turn a
    2.25 km distance into 2.2 instead of 2.3. Non-finite values are returned
    unchanged.
    """

    if not isfinite(value):
        return value

    factor = 10**ndigits
    return copysign(floor(abs(value) * factor + 0.5) / factor, value)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two lat/lon points in kilometers.

    Args:
        lat1: Latitude of the first point.
        lon1: Longitude of the first point.
        lat2: Latitude of the second point.
        lon2: Longitude of the second point.

    Returns:
        Unrounded distance in kilometers, or NaN when any input is NaN or
        infinite.

    Notes:
        Inputs are not range checked. Callers pass raw degrees straight from
        the device or the database.
    """

    if not all(isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return nan

    delta_lat = to_radians(lat2 - lat1)
    delta_lon = to_radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(to_radians(lat1)) * cos(
        to_radians(lat2)
    ) * sin(delta_lon / 2) ** 2
    # Float error can push a just past 1 for antipodal points.
    if a > 1.0:
        a = 1.0
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers, rounded to one decimal place."""

    return round_half_away(haversine_km(lat1, lon1, lat2, lon2), 1)


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Rounded distance in kilometers between two coordinates."""

    return calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def is_within_radius(
    lat1: float, lon1: float, lat2: float, lon2: float, radius_km: float
) -> bool:
    """Return True when the second point lies within radius_km of the first.

    The boundary is inclusive: a point exactly radius_km away is nearby.
    """

    return calculate_distance(lat1, lon1, lat2, lon2) <= radius_km


def format_distance(distance_km: float) -> str:
    """Render a distance for display, in meters below one kilometer."""

    if distance_km < 1:
        return f"{int(round_half_away(distance_km * 1000))}m away"
    return f"{distance_km:.1f}km away"


def get_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from the first point to the second, in [0, 360)."""

    phi1 = to_radians(lat1)
    phi2 = to_radians(lat2)
    delta_lambda = to_radians(lon2 - lon1)

    y = sin(delta_lambda) * cos(phi2)
    x = cos(phi1) * sin(phi2) - sin(phi1) * cos(phi2) * cos(delta_lambda)
    theta = atan2(y, x)

    return (theta * 180 / pi + 360) % 360


def get_cardinal_direction(bearing: float) -> str:
    """Map a bearing in degrees onto one of the eight compass points."""

    index = int(round_half_away(bearing / 45)) % 8
    return CARDINAL_DIRECTIONS[index]
