"""
RideRequest registry.

Creates rides, looks them up, and funnels every status change through the
state machine under the ride's row lock. A rider may hold at most one
non-terminal ride; the ``one_active_ride_per_rider`` constraint backs up the
pre-check when two requests race.
"""

import logging
from typing import Optional

from django.db import IntegrityError, transaction

from rides.models import RideRequest, ACTIVE_STATUSES
from . import state_machine
from .exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def active_ride_for_rider(rider_id) -> Optional[RideRequest]:
    return (
        RideRequest.objects.filter(rider_id=rider_id, status__in=ACTIVE_STATUSES)
        .select_related("driver")
        .first()
    )


def active_ride_for_driver(driver_id) -> Optional[RideRequest]:
    return (
        RideRequest.objects.filter(driver_id=driver_id, status__in=ACTIVE_STATUSES)
        .select_related("rider")
        .first()
    )


def create(
    rider,
    pickup_latitude,
    pickup_longitude,
    ride_type: str,
    estimated_fare,
    pickup_address: str = "",
    destination_address: str = "",
    destination_latitude=None,
    destination_longitude=None,
) -> RideRequest:
    """
    Register a new ride in ``requested``.

    Raises:
        ConflictError: the rider already has a non-terminal ride
    """
    if active_ride_for_rider(rider.id):
        raise ConflictError()

    try:
        with transaction.atomic():
            ride = RideRequest.objects.create(
                rider=rider,
                pickup_address=pickup_address,
                pickup_latitude=pickup_latitude,
                pickup_longitude=pickup_longitude,
                destination_address=destination_address,
                destination_latitude=destination_latitude,
                destination_longitude=destination_longitude,
                ride_type=ride_type,
                estimated_fare=estimated_fare,
            )
    except IntegrityError:
        # Lost the race against a concurrent request by the same rider
        raise ConflictError()

    logger.info("Ride %s requested by rider %s (%s)", ride.ride_id, rider.id, ride_type)
    return ride


def get(ride_id: str) -> RideRequest:
    try:
        return RideRequest.objects.get(ride_id=ride_id)
    except RideRequest.DoesNotExist:
        raise NotFoundError(f"Ride {ride_id} not found")


def lock(ride_id: str) -> RideRequest:
    """Fetch the ride with ``SELECT ... FOR UPDATE``. Call inside ``transaction.atomic``."""
    try:
        return RideRequest.objects.select_for_update().get(ride_id=ride_id)
    except RideRequest.DoesNotExist:
        raise NotFoundError(f"Ride {ride_id} not found")


def transition(ride_id: str, new_status: str, **fields) -> RideRequest:
    """Lock the ride and apply one state machine transition."""
    with transaction.atomic():
        ride = lock(ride_id)
        return state_machine.apply_transition(ride, new_status, **fields)
