"""
Pluggable fare and ETA estimators.

The defaults are straight-line approximations. Deployments swap them through
``RIDE_FARE_ESTIMATOR`` / ``RIDE_ETA_ESTIMATOR`` (dotted paths).
"""

import math
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils.module_loading import import_string

from common.utils import distance_km

DEFAULT_FARE_ESTIMATOR = "services.estimators.estimate_fare"
DEFAULT_ETA_ESTIMATOR = "services.estimators.estimate_eta_minutes"

AVERAGE_SPEED_KMH = 30
CENTS = Decimal("0.01")


def estimate_fare(pickup_latitude, pickup_longitude, destination_latitude=None, destination_longitude=None) -> Decimal:
    """Base fare plus a per-km rate over the straight-line trip distance."""
    base_fare = Decimal(str(getattr(settings, "RIDE_BASE_FARE", "3.00")))
    per_km = Decimal(str(getattr(settings, "RIDE_PER_KM_RATE", "1.50")))

    if destination_latitude is None or destination_longitude is None:
        return base_fare.quantize(CENTS)

    trip_km = distance_km(
        pickup_latitude, pickup_longitude, destination_latitude, destination_longitude
    )
    fare = base_fare + per_km * trip_km
    return fare.quantize(CENTS, rounding=ROUND_HALF_UP)


def estimate_eta_minutes(distance_meters: float) -> int:
    """Minutes for a driver to cover ``distance_meters`` at city speed (at least 1)."""
    minutes = (distance_meters / 1000) / AVERAGE_SPEED_KMH * 60
    return max(1, int(math.ceil(minutes)))


def get_fare_estimator():
    return import_string(getattr(settings, "RIDE_FARE_ESTIMATOR", DEFAULT_FARE_ESTIMATOR))


def get_eta_estimator():
    return import_string(getattr(settings, "RIDE_ETA_ESTIMATOR", DEFAULT_ETA_ESTIMATOR))
