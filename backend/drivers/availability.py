"""
Driver availability pool.

Tracks which drivers are online, verified and free, and picks the ordered
candidate list for a pickup point. ``mark_busy`` is a compare-and-set on the
``is_busy`` column so two rides can never claim the same driver.
"""

import logging
from typing import Iterable, List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from common.utils import calculate_distance
from drivers.models import DriverProfile
from services.ride_management.exceptions import AlreadyBusyError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_SCORER = "drivers.availability.proximity_score"


def get_profile(driver_id) -> DriverProfile:
    try:
        return DriverProfile.objects.select_related("user").get(user_id=driver_id)
    except DriverProfile.DoesNotExist:
        raise NotFoundError(f"Driver {driver_id} not found")


# ---------------------- Online / Offline / Location ----------------------

def set_online(driver_id, latitude, longitude, address: Optional[str] = None) -> DriverProfile:
    """Put a driver online at the given location."""
    profile = get_profile(driver_id)
    profile.is_online = True
    profile.current_latitude = latitude
    profile.current_longitude = longitude
    if address is not None:
        profile.current_address = address
    profile.last_location_update = timezone.now()
    profile.save(update_fields=[
        "is_online", "current_latitude", "current_longitude",
        "current_address", "last_location_update",
    ])
    logger.info("Driver %s is online at (%s, %s)", driver_id, latitude, longitude)
    return profile


def set_offline(driver_id) -> DriverProfile:
    """Take a driver offline. A busy driver stays busy until the ride ends."""
    profile = get_profile(driver_id)
    profile.is_online = False
    profile.save(update_fields=["is_online"])
    logger.info("Driver %s went offline", driver_id)
    return profile


def update_location(driver_id, latitude, longitude, address: Optional[str] = None) -> DriverProfile:
    profile = get_profile(driver_id)
    profile.current_latitude = latitude
    profile.current_longitude = longitude
    if address is not None:
        profile.current_address = address
    profile.last_location_update = timezone.now()
    profile.save(update_fields=[
        "current_latitude", "current_longitude", "current_address", "last_location_update",
    ])
    return profile


# ---------------------- Busy / Free ----------------------

def mark_busy(driver_id) -> None:
    """
    Claim a free driver.

    Raises:
        AlreadyBusyError: the driver is already busy (lost the race)
        NotFoundError: no such driver
    """
    updated = DriverProfile.objects.filter(user_id=driver_id, is_busy=False).update(is_busy=True)
    if updated:
        return
    if not DriverProfile.objects.filter(user_id=driver_id).exists():
        raise NotFoundError(f"Driver {driver_id} not found")
    raise AlreadyBusyError(f"Driver {driver_id} is already busy")


def mark_free(driver_id) -> bool:
    """Release a driver. Returns False if the driver was already free."""
    updated = DriverProfile.objects.filter(user_id=driver_id, is_busy=True).update(is_busy=False)
    if not updated:
        logger.debug("mark_free: driver %s was not busy", driver_id)
    return bool(updated)


# ---------------------- Candidate selection ----------------------

def proximity_score(profile: DriverProfile, distance_meters: float):
    """Default ordering: closest first, then higher rating, then lower driver id."""
    return (distance_meters, -float(profile.rating), profile.user_id)


def candidates(
    pickup_latitude,
    pickup_longitude,
    ride_type: str,
    max_count: int,
    exclude: Iterable[int] = (),
) -> List[int]:
    """
    Return up to ``max_count`` driver ids able to take a ride, best first.

    Only online, verified, free drivers with a known location and a matching
    vehicle type are considered. Read-only.
    """
    if max_count <= 0:
        return []

    available = DriverProfile.objects.filter(
        is_online=True,
        is_verified=True,
        is_busy=False,
        vehicle_type=ride_type,
        current_latitude__isnull=False,
        current_longitude__isnull=False,
    )
    exclude = list(exclude)
    if exclude:
        available = available.exclude(user_id__in=exclude)

    scorer = import_string(getattr(settings, "RIDE_CANDIDATE_SCORER", DEFAULT_SCORER))
    radius = getattr(settings, "RIDE_CANDIDATE_RADIUS_METERS", None)

    scored = []
    for profile in available:
        distance = calculate_distance(
            pickup_latitude,
            pickup_longitude,
            profile.current_latitude,
            profile.current_longitude,
        )
        if radius is not None and distance > float(radius):
            continue
        scored.append((scorer(profile, distance), profile.user_id))

    scored.sort(key=lambda item: item[0])
    return [driver_id for _, driver_id in scored[:max_count]]
