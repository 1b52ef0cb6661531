"""
Geographic Utility Functions

Helper functions for geographic calculations including distance measurements.
"""
from math import radians, cos, sin, asin, sqrt

EARTH_RADIUS_M = 6_371_000
METERS_PER_DEGREE = 111_000


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float
) -> float:
    """
    Calculate great-circle distance between two points using Haversine formula.

    Args:
        lat1: Latitude of first point (decimal degrees)
        lon1: Longitude of first point (decimal degrees)
        lat2: Latitude of second point (decimal degrees)
        lon2: Longitude of second point (decimal degrees)

    Returns:
        Distance in meters

    Formula:
        a = sin²(Δlat/2) + cos(lat1) × cos(lat2) × sin²(Δlon/2)
        c = 2 × asin(√a)
        distance = R × c  (R = Earth radius = 6,371 km)
    """
    lon1, lat1, lon2, lat2 = map(radians, [lon1, lat1, lon2, lat2])

    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = sin(dlat/2)**2 + cos(lat1) * cos(lat2) * sin(dlon/2)**2
    c = 2 * asin(sqrt(a))

    return c * EARTH_RADIUS_M


def radius_to_degrees(radius_m: float) -> float:
    """Approximate a radius in meters as degrees of latitude (1° ≈ 111 km)."""
    return radius_m / METERS_PER_DEGREE


def bounding_box(latitude: float, longitude: float, radius_m: float) -> tuple:
    """
    Square bounding box around a point.

    Returns:
        (min_lat, max_lat, min_lon, max_lon)
    """
    delta = radius_to_degrees(radius_m)
    return (latitude - delta, latitude + delta, longitude - delta, longitude + delta)
