"""
Ride state machine.

    requested -> accepted -> driver_on_way -> rider_picked_up -> completed
        |            |             |
        +------------+-------------+----> cancelled

``apply_transition`` expects the caller to hold the ride's row lock (see
``registry.lock``). The status write is also a compare-and-set on the previous
status, so a stale instance loses even where row locks are not enforced.
Side effects (driver busy flag, sibling offers, archival, earnings) run in the
same transaction; notifications are queued for after commit.
"""

import logging
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from drivers import availability
from realtime import notifications
from rides.models import (
    RideRequest,
    RideOffer,
    REQUESTED,
    ACCEPTED,
    DRIVER_ON_WAY,
    RIDER_PICKED_UP,
    COMPLETED,
    CANCELLED,
    TERMINAL_STATUSES,
)
from services import handoff
from .exceptions import InvalidTransitionError, OtpMismatchError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    REQUESTED: (ACCEPTED, CANCELLED),
    ACCEPTED: (DRIVER_ON_WAY, CANCELLED),
    DRIVER_ON_WAY: (RIDER_PICKED_UP, CANCELLED),
    RIDER_PICKED_UP: (COMPLETED,),
    COMPLETED: (),
    CANCELLED: (),
}

# Statuses in which a driver is assigned and flagged busy
DRIVER_HELD_STATUSES = (ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP)

STATUS_MESSAGES = {
    ACCEPTED: "Your ride has been accepted! The driver is on the way.",
    DRIVER_ON_WAY: "Your driver is on the way to the pickup point.",
    RIDER_PICKED_UP: "You have been picked up. Enjoy your ride!",
    COMPLETED: "Your ride has been completed. Thank you for riding with us!",
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, ())


def expire_pending_offers(ride: RideRequest, now=None, notify_drivers: bool = True) -> int:
    """Expire every pending offer of ``ride``. Returns how many were expired."""
    now = now or timezone.now()
    pending = RideOffer.objects.filter(ride=ride, status="pending")
    driver_ids = list(pending.values_list("driver_id", flat=True))
    if not driver_ids:
        return 0

    expired = pending.update(status="expired", responded_at=now)
    if notify_drivers:
        for driver_id in driver_ids:
            notifications.notify_on_commit(
                driver_id,
                notifications.OFFER_EXPIRED,
                {"ride_id": ride.ride_id, "message": "This ride is no longer available."},
            )
    return expired


def _check_otp(ride: RideRequest, otp: Optional[str]):
    if otp is None or otp == "":
        if getattr(settings, "RIDE_REQUIRE_PICKUP_OTP", False):
            raise OtpMismatchError("Pickup code is required")
        return
    if str(otp).strip() != ride.otp:
        raise OtpMismatchError()


def apply_transition(
    ride: RideRequest,
    new_status: str,
    *,
    driver_id=None,
    otp: Optional[str] = None,
    reason: Optional[str] = None,
    cancelled_by: Optional[str] = None,
    final_fare=None,
    distance_km=None,
    duration_minutes=None,
) -> RideRequest:
    """
    Move a locked ride to ``new_status`` and run the transition's side effects.

    Raises:
        InvalidTransitionError: move not allowed from the current status, or the
            row changed underneath a stale instance
        OtpMismatchError: wrong (or required and missing) pickup code
        AlreadyBusyError: the accepting driver is already on another ride
    """
    from_status = ride.status
    if not can_transition(from_status, new_status):
        raise InvalidTransitionError(
            ride_id=ride.ride_id, from_status=from_status, to_status=new_status
        )

    now = timezone.now()
    fields = {"status": new_status}

    if new_status == ACCEPTED:
        if driver_id is None:
            raise InvalidTransitionError(
                f"Ride {ride.ride_id} cannot be accepted without a driver",
                ride_id=ride.ride_id, from_status=from_status, to_status=new_status,
            )
        fields.update(driver_id=driver_id, accepted_at=now)
    elif new_status == DRIVER_ON_WAY:
        fields["driver_on_way_at"] = now
    elif new_status == RIDER_PICKED_UP:
        _check_otp(ride, otp)
        fields.update(picked_up_at=now, started_at=now)
    elif new_status == COMPLETED:
        fields.update(
            completed_at=now,
            final_fare=final_fare if final_fare is not None else ride.estimated_fare,
            distance_km=distance_km,
            duration_minutes=duration_minutes,
        )
    elif new_status == CANCELLED:
        fields.update(
            cancelled_at=now,
            cancellation_reason=reason,
            cancelled_by=cancelled_by,
        )

    with transaction.atomic():
        updated = RideRequest.objects.filter(pk=ride.pk, status=from_status).update(**fields)
        if not updated:
            raise InvalidTransitionError(
                f"Ride {ride.ride_id} changed while moving to '{new_status}'",
                ride_id=ride.ride_id, from_status=from_status, to_status=new_status,
            )
        for name, value in fields.items():
            setattr(ride, name, value)

        if new_status == ACCEPTED:
            availability.mark_busy(driver_id)

        if from_status == REQUESTED:
            expire_pending_offers(ride, now=now)

        if from_status in DRIVER_HELD_STATUSES and new_status in TERMINAL_STATUSES:
            availability.mark_free(ride.driver_id)

        if new_status == COMPLETED:
            handoff.record_earnings(ride.driver_id, ride.ride_id, ride.final_fare)

        if new_status in TERMINAL_STATUSES:
            handoff.archive_ride(ride)

    logger.info("Ride %s: %s -> %s", ride.ride_id, from_status, new_status)
    _queue_notifications(ride, from_status)
    return ride


def _queue_notifications(ride: RideRequest, from_status: str):
    status = ride.status

    if status == ACCEPTED:
        kind = notifications.RIDE_ACCEPTED
    elif status == COMPLETED:
        kind = notifications.RIDE_COMPLETED
    elif status == CANCELLED:
        kind = notifications.RIDE_CANCELLED
    else:
        kind = notifications.RIDE_STATUS_CHANGED

    if status == CANCELLED:
        message = ride.cancellation_reason or "This ride was cancelled."
    else:
        message = STATUS_MESSAGES.get(status, "")

    payload = notifications.ride_payload(ride, message=message, previous_status=from_status)
    notifications.notify_on_commit(ride.rider_id, kind, payload)
    if ride.driver_id:
        notifications.notify_on_commit(ride.driver_id, kind, payload)
