"""
Build rounds of ride offers.

Each dispatch round asks the availability pool for the best free drivers near
the pickup (closest first by default), skipping anyone who already had an offer
for this ride, and creates one pending offer per candidate.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common.utils import calculate_distance
from drivers import availability
from drivers.models import DriverProfile
from realtime import notifications
from rides.models import RideOffer, REQUESTED
from services.estimators import get_eta_estimator
from services.ride_management import registry
from services.ride_management.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


def dispatch(ride) -> int:
    """
    Run one dispatch round for a ride still waiting for a driver.

    Args:
        ride: RideRequest instance or its ``ride_id``

    Returns:
        Number of offers created (0 when no candidate is available)

    Raises:
        InvalidTransitionError: the ride is no longer ``requested``
        NotFoundError: unknown ride
    """
    ride_id = getattr(ride, "ride_id", ride)
    max_candidates = getattr(settings, "RIDE_DISPATCH_MAX_CANDIDATES", 5)
    ttl = getattr(settings, "RIDE_OFFER_TTL_SECONDS", 300)

    with transaction.atomic():
        ride = registry.lock(ride_id)
        if ride.status != REQUESTED:
            raise InvalidTransitionError(
                f"Ride {ride_id} is no longer waiting for a driver",
                ride_id=ride_id, from_status=ride.status, to_status=REQUESTED,
            )

        ride.dispatch_round += 1
        ride.save(update_fields=["dispatch_round"])

        already_offered = RideOffer.objects.filter(ride=ride).values_list("driver_id", flat=True)
        driver_ids = availability.candidates(
            ride.pickup_latitude,
            ride.pickup_longitude,
            ride.ride_type,
            max_candidates,
            exclude=already_offered,
        )

        profiles = {
            profile.user_id: profile
            for profile in DriverProfile.objects.filter(user_id__in=driver_ids)
        }
        eta_estimator = get_eta_estimator()
        expires_at = timezone.now() + timedelta(seconds=ttl)

        offers = []
        for order, driver_id in enumerate(driver_ids):
            profile = profiles[driver_id]
            distance = calculate_distance(
                profile.current_latitude,
                profile.current_longitude,
                ride.pickup_latitude,
                ride.pickup_longitude,
            )
            offer = RideOffer.objects.create(
                ride=ride,
                driver_id=driver_id,
                round=ride.dispatch_round,
                order=order,
                estimated_fare=ride.estimated_fare,
                estimated_eta_minutes=eta_estimator(distance),
                expires_at=expires_at,
            )
            offers.append(offer)
            notifications.notify_on_commit(
                driver_id,
                notifications.RIDE_OFFER,
                notifications.offer_payload(offer, message="New ride request nearby"),
            )

    logger.info(
        "Dispatch round %d for ride %s: %d offers",
        ride.dispatch_round, ride.ride_id, len(offers)
    )
    return len(offers)
