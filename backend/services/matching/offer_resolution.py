"""
Resolve a driver's answer to a ride offer.

Accepting is a single critical section under the ride lock: the offer is
marked accepted, the ride moves to ``accepted`` (which claims the driver and
expires the sibling offers), or nothing changes at all.
"""

import logging

from django.db import transaction
from django.utils import timezone

from rides.models import RideOffer, RideRequest, ACCEPTED, REQUESTED
from services.ride_management import registry, state_machine
from services.ride_management.exceptions import (
    AlreadyResolvedError,
    DispatchInvariantError,
    NotFoundError,
    OfferExpiredError,
)

logger = logging.getLogger(__name__)


def _get_offer(offer_id, driver_id) -> RideOffer:
    try:
        offer = RideOffer.objects.select_related("ride").get(id=offer_id)
    except RideOffer.DoesNotExist:
        raise NotFoundError(f"Offer {offer_id} not found")
    if offer.driver_id != driver_id:
        # Someone else's offer looks the same as a missing one
        raise NotFoundError(f"Offer {offer_id} not found")
    return offer


def _lock_pending_offer(offer: RideOffer, now) -> RideOffer:
    """Re-read the offer under the ride lock and make sure it is still open."""
    offer = RideOffer.objects.select_for_update().get(pk=offer.pk)
    if offer.status == "expired":
        raise OfferExpiredError()
    if offer.status in ("accepted", "declined"):
        raise AlreadyResolvedError()
    if offer.expires_at <= now:
        raise OfferExpiredError()
    return offer


def _check_ride_waiting(ride: RideRequest, offer: RideOffer, attempted: str):
    if ride.status == REQUESTED:
        return
    logger.error(
        "Pending offer %s on ride %s which is already '%s' (attempted %s)",
        offer.id, ride.ride_id, ride.status, attempted,
    )
    raise DispatchInvariantError(
        f"Offer {offer.id} is pending but ride {ride.ride_id} is {ride.status}"
    )


def resolve_accept(offer_id, driver_id) -> RideRequest:
    """
    Accept an offer on behalf of its driver.

    Raises:
        NotFoundError: unknown offer, or not this driver's offer
        OfferExpiredError: offer expired or past its deadline
        AlreadyResolvedError: offer already accepted or declined
        AlreadyBusyError: the driver is on another ride (nothing is changed)
    """
    offer = _get_offer(offer_id, driver_id)

    with transaction.atomic():
        ride = registry.lock(offer.ride.ride_id)
        now = timezone.now()
        offer = _lock_pending_offer(offer, now)
        _check_ride_waiting(ride, offer, "accept")

        updated = RideOffer.objects.filter(pk=offer.pk, status="pending").update(
            status="accepted", responded_at=now
        )
        if not updated:
            raise AlreadyResolvedError()

        ride = state_machine.apply_transition(ride, ACCEPTED, driver_id=driver_id)

    logger.info("Driver %s accepted ride %s (offer %s)", driver_id, ride.ride_id, offer.id)
    return ride


def resolve_decline(offer_id, driver_id) -> RideOffer:
    """Decline an offer. Other offers of the ride are left alone."""
    offer = _get_offer(offer_id, driver_id)

    with transaction.atomic():
        ride = registry.lock(offer.ride.ride_id)
        now = timezone.now()
        offer = _lock_pending_offer(offer, now)
        _check_ride_waiting(ride, offer, "decline")

        updated = RideOffer.objects.filter(pk=offer.pk, status="pending").update(
            status="declined", responded_at=now
        )
        if not updated:
            raise AlreadyResolvedError()
        offer.status = "declined"
        offer.responded_at = now
        offer.ride = ride

    logger.info("Driver %s declined ride %s (offer %s)", driver_id, ride.ride_id, offer.id)
    return offer
