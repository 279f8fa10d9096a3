"""
Persistence handoff for finished rides.

``archive_ride`` copies a terminal ride into ride history and
``record_earnings`` books the driver's share of a completed fare. Both are
keyed by ride id with unique constraints, so a repeated call is a no-op.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from drivers.models import DriverEarning, DriverProfile
from rides.models import RideHistory, RideRequest

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def archive_ride(ride: RideRequest) -> RideHistory:
    """Write the ride history row and flag the live row as archived."""
    history, created = RideHistory.objects.get_or_create(
        ride_id=ride.ride_id,
        defaults={
            "rider_id": ride.rider_id,
            "driver_id": ride.driver_id,
            "pickup_address": ride.pickup_address,
            "destination_address": ride.destination_address,
            "ride_type": ride.ride_type,
            "status": ride.status,
            "estimated_fare": ride.estimated_fare,
            "final_fare": ride.final_fare,
            "distance_km": ride.distance_km,
            "duration_minutes": ride.duration_minutes,
            "requested_at": ride.requested_at,
            "accepted_at": ride.accepted_at,
            "started_at": ride.started_at,
            "completed_at": ride.completed_at,
            "cancelled_at": ride.cancelled_at,
            "cancellation_reason": ride.cancellation_reason,
            "cancelled_by": ride.cancelled_by,
        },
    )
    if not created:
        logger.warning("Ride %s was already archived", ride.ride_id)
        return history

    ride.archived_at = history.archived_at or timezone.now()
    RideRequest.objects.filter(pk=ride.pk).update(archived_at=ride.archived_at)
    logger.info("Archived ride %s (%s)", ride.ride_id, ride.status)
    return history


def record_earnings(driver_id, ride_id: str, gross_fare) -> DriverEarning:
    """
    Book a completed ride's earnings and bump the driver's running totals.

    The platform keeps ``DRIVER_COMMISSION_RATE`` percent of the gross fare.
    """
    gross = Decimal(str(gross_fare)).quantize(CENTS, rounding=ROUND_HALF_UP)
    rate = Decimal(str(getattr(settings, "DRIVER_COMMISSION_RATE", "15.00")))
    commission = (gross * rate / Decimal("100")).quantize(CENTS, rounding=ROUND_HALF_UP)
    net = gross - commission

    earning, created = DriverEarning.objects.get_or_create(
        ride_id=ride_id,
        defaults={
            "driver_id": driver_id,
            "gross_amount": gross,
            "commission_rate": rate,
            "commission_amount": commission,
            "net_amount": net,
        },
    )
    if not created:
        logger.warning("Earnings for ride %s were already recorded", ride_id)
        return earning

    DriverProfile.objects.filter(user_id=driver_id).update(
        total_rides=F("total_rides") + 1,
        total_earnings=F("total_earnings") + net,
    )
    logger.info("Recorded earnings for ride %s: gross=%s net=%s", ride_id, gross, net)
    return earning
