"""
Sweeper for stale offers and rides stuck waiting for a driver.

Runs periodically (Celery beat, or ``manage.py sweep_rides``). Each affected
ride is handled in its own transaction under its own ride lock, so one bad
ride never blocks the rest of the sweep.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import timedelta

from django.conf import settings
from django.db import close_old_connections, transaction
from django.utils import timezone

from realtime import notifications
from rides.models import RideOffer, RideRequest, CANCELLED, REQUESTED
from services.matching import offer_builder
from services.ride_management import registry, state_machine
from services.ride_management.exceptions import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)

REASON_TIMED_OUT = "request timed out"
REASON_NO_DRIVERS = "no drivers available"


@dataclass
class SweepResult:
    expired_offers: int = 0
    redispatched: int = 0
    cancelled: int = 0
    failed: int = 0

    @property
    def did_work(self) -> bool:
        return any(asdict(self).values())

    def as_dict(self):
        return asdict(self)


def _affected_ride_ids(now):
    overdue = RideOffer.objects.filter(
        status="pending", expires_at__lte=now
    ).values_list("ride__ride_id", flat=True)

    waiting = RideRequest.objects.filter(status=REQUESTED).exclude(
        offers__status="pending"
    ).values_list("ride_id", flat=True)

    return sorted(set(overdue) | set(waiting))


def _sweep_ride(ride_id: str, now) -> SweepResult:
    result = SweepResult()
    timeout = timedelta(seconds=getattr(settings, "RIDE_REQUEST_TIMEOUT_SECONDS", 600))
    max_rounds = getattr(settings, "RIDE_MAX_DISPATCH_ROUNDS", 3)

    with transaction.atomic():
        ride = registry.lock(ride_id)

        overdue = RideOffer.objects.filter(ride=ride, status="pending", expires_at__lte=now)
        overdue_drivers = list(overdue.values_list("driver_id", flat=True))
        if overdue_drivers:
            result.expired_offers = overdue.update(status="expired", responded_at=now)
            for driver_id in overdue_drivers:
                notifications.notify_on_commit(
                    driver_id,
                    notifications.OFFER_EXPIRED,
                    {"ride_id": ride.ride_id, "message": "Your ride offer has timed out."},
                )

        if ride.status != REQUESTED or ride.offers.filter(status="pending").exists():
            return result

        if now - ride.requested_at >= timeout:
            reason = REASON_TIMED_OUT
        elif ride.dispatch_round == 0:
            # First round belongs to request_ride
            return result
        elif ride.dispatch_round >= max_rounds:
            reason = REASON_NO_DRIVERS
        else:
            reason = None

        if reason:
            state_machine.apply_transition(ride, CANCELLED, reason=reason, cancelled_by="system")
            result.cancelled = 1
            logger.warning(
                "Auto-cancelled ride %s after %d dispatch rounds: %s",
                ride.ride_id, ride.dispatch_round, reason
            )
        else:
            offer_builder.dispatch(ride)
            result.redispatched = 1

    return result


def sweep_stale_rides(now=None) -> SweepResult:
    """
    Expire overdue offers, then re-dispatch or cancel rides left without offers.

    Returns:
        SweepResult with per-category counts
    """
    now = now or timezone.now()
    total = SweepResult()

    for ride_id in _affected_ride_ids(now):
        try:
            result = _sweep_ride(ride_id, now)
        except (InvalidTransitionError, NotFoundError) as exc:
            # Lost a race with an accept/cancel; the ride is someone else's now
            logger.debug("Sweep skipped ride %s: %s", ride_id, exc)
            continue
        except Exception:
            logger.exception("Sweep failed for ride %s", ride_id)
            total.failed += 1
            continue

        total.expired_offers += result.expired_offers
        total.redispatched += result.redispatched
        total.cancelled += result.cancelled

    if total.did_work:
        logger.info("Ride sweep: %s", total.as_dict())

    # Close stale DB connections for long-running workers (not mid-transaction)
    if not transaction.get_connection().in_atomic_block:
        close_old_connections()
    return total
