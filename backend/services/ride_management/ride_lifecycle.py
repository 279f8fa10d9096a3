"""
Core ride lifecycle operations.

These are the inbound operations behind the API views. Each one checks that
the caller is a participant, delegates to the registry / matcher, and returns
a ``RideResult``; failures surface as the typed errors in ``exceptions``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from rides.models import (
    RideRequest,
    RideOffer,
    CANCELLED,
    COMPLETED,
    DRIVER_ON_WAY,
    REQUESTED,
    RIDER_PICKED_UP,
)
from services.estimators import get_fare_estimator
from services.matching import offer_builder, offer_resolution
from . import registry
from .exceptions import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)

DRIVER_REPORTABLE_STATUSES = {
    "on_way": DRIVER_ON_WAY,
    DRIVER_ON_WAY: DRIVER_ON_WAY,
    "picked_up": RIDER_PICKED_UP,
    RIDER_PICKED_UP: RIDER_PICKED_UP,
}


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[RideRequest] = None
    message: str = ""
    error_code: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


def _is_driver(user) -> bool:
    return getattr(user, "role", None) == "driver"


def _get_participant_ride(user, ride_id: str) -> RideRequest:
    """Fetch a ride the user takes part in; anyone else gets NotFoundError."""
    ride = registry.get(ride_id)
    if user.id not in (ride.rider_id, ride.driver_id):
        raise NotFoundError(f"Ride {ride_id} not found")
    return ride


def _get_assigned_ride(driver, ride_id: str) -> RideRequest:
    ride = registry.get(ride_id)
    if ride.driver_id != driver.id:
        raise NotFoundError(f"Ride {ride_id} not found or not assigned to you")
    return ride


# ===================== Rider Operations =====================

def request_ride(
    rider,
    pickup_latitude,
    pickup_longitude,
    pickup_address: str = "",
    destination_address: str = "",
    destination_latitude=None,
    destination_longitude=None,
    ride_type: str = "car",
    estimated_fare=None,
) -> RideResult:
    """
    Create a ride request and dispatch the first round of offers.

    When ``estimated_fare`` is omitted the configured fare estimator is used.

    Raises:
        ConflictError: the rider already has an active ride
    """
    if estimated_fare is None:
        estimated_fare = get_fare_estimator()(
            pickup_latitude, pickup_longitude, destination_latitude, destination_longitude
        )

    # The sweeper must never see the ride before its first round is out
    with transaction.atomic():
        ride = registry.create(
            rider,
            pickup_latitude,
            pickup_longitude,
            ride_type,
            estimated_fare,
            pickup_address=pickup_address,
            destination_address=destination_address,
            destination_latitude=destination_latitude,
            destination_longitude=destination_longitude,
        )
        offers = offer_builder.dispatch(ride)
    ride.refresh_from_db()

    if offers:
        message = "Notifying nearby drivers..."
    else:
        message = "No available drivers found nearby yet. We will keep looking."

    return RideResult(
        success=True,
        ride=ride,
        message=message,
        extra={"driver_candidates": offers},
    )


def cancel_ride(user, ride_id: str, reason: Optional[str] = None) -> RideResult:
    """
    Cancel a ride as its rider or its assigned driver.

    Only rides that have not picked the rider up yet can be cancelled.
    """
    ride = _get_participant_ride(user, ride_id)

    if user.id == ride.rider_id:
        cancelled_by = "rider"
        reason = reason or "Cancelled by rider"
    else:
        cancelled_by = "driver"
        reason = reason or "Cancelled by driver"

    ride = registry.transition(
        ride.ride_id, CANCELLED, reason=reason, cancelled_by=cancelled_by
    )

    return RideResult(
        success=True,
        ride=ride,
        message="Ride cancelled successfully",
    )


# ===================== Driver Operations =====================

def accept_offer(driver, offer_id) -> RideResult:
    """Accept a ride offer; the first driver to accept gets the ride."""
    ride = offer_resolution.resolve_accept(offer_id, driver.id)
    return RideResult(
        success=True,
        ride=ride,
        message="Ride accepted! Navigate to the pickup location.",
    )


def decline_offer(driver, offer_id) -> RideResult:
    offer = offer_resolution.resolve_decline(offer_id, driver.id)
    return RideResult(
        success=True,
        ride=offer.ride,
        message="Offer declined.",
        extra={"offer_id": offer.id},
    )


def report_driver_status(driver, ride_id: str, status: str, otp: Optional[str] = None) -> RideResult:
    """
    Report progress on an assigned ride: ``on_way`` or ``picked_up``.

    ``picked_up`` checks the rider's pickup code when one is given.
    """
    new_status = DRIVER_REPORTABLE_STATUSES.get(status)
    ride = _get_assigned_ride(driver, ride_id)
    if new_status is None:
        raise InvalidTransitionError(
            f"Unknown driver status '{status}'",
            ride_id=ride_id, from_status=ride.status, to_status=status,
        )

    ride = registry.transition(ride.ride_id, new_status, otp=otp)
    return RideResult(
        success=True,
        ride=ride,
        message=f"Ride status updated to {new_status}",
    )


def complete_ride(
    driver,
    ride_id: str,
    final_fare=None,
    distance_km=None,
    duration_minutes=None,
) -> RideResult:
    """
    Complete a ride - called by driver when the rider reaches the destination.

    The final fare defaults to the estimated fare.
    """
    ride = _get_assigned_ride(driver, ride_id)
    ride = registry.transition(
        ride.ride_id,
        COMPLETED,
        final_fare=final_fare,
        distance_km=distance_km,
        duration_minutes=duration_minutes,
    )
    return RideResult(
        success=True,
        ride=ride,
        message="Ride completed successfully",
    )


# ===================== Queries =====================

def get_ride(user, ride_id: str) -> RideResult:
    return RideResult(success=True, ride=_get_participant_ride(user, ride_id))


def get_current_ride(user) -> RideResult:
    """Current non-terminal ride of a rider or driver (``ride`` is None if idle)."""
    if _is_driver(user):
        ride = registry.active_ride_for_driver(user.id)
    else:
        ride = registry.active_ride_for_rider(user.id)

    return RideResult(
        success=True,
        ride=ride,
        message="" if ride else "No active ride",
    )


def get_pending_offers(driver) -> RideResult:
    """Open offers for a driver, oldest round first."""
    offers = list(
        RideOffer.objects.filter(
            driver=driver,
            status="pending",
            expires_at__gt=timezone.now(),
            ride__status=REQUESTED,
        )
        .select_related("ride")
        .order_by("offered_at")
    )
    return RideResult(
        success=True,
        message=f"{len(offers)} pending offers",
        extra={"offers": offers},
    )
