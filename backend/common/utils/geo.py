"""
Great-circle distances between coordinates.

Straight-line only; real routing is left to the pluggable estimators.
Inputs may be floats or the Decimal values stored on the models.
"""

from decimal import Decimal
from math import radians, cos, sin, asin, sqrt

EARTH_RADIUS_METERS = 6371000


def calculate_distance(lat1, lon1, lat2, lon2) -> float:
    """Haversine distance between two points, in meters."""
    phi1, lam1, phi2, lam2 = (radians(float(v)) for v in (lat1, lon1, lat2, lon2))
    h = sin((phi2 - phi1) / 2) ** 2 + cos(phi1) * cos(phi2) * sin((lam2 - lam1) / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * asin(sqrt(h))


def distance_km(lat1, lon1, lat2, lon2) -> Decimal:
    """Haversine distance in kilometers, as a Decimal for fare arithmetic."""
    return Decimal(str(calculate_distance(lat1, lon1, lat2, lon2))) / 1000
