"""Contact lookup for riders and drivers, shown to the other party of a ride."""

from typing import Any, Dict

from django.contrib.auth import get_user_model

from drivers.models import DriverProfile
from services.ride_management.exceptions import NotFoundError

User = get_user_model()


def get_rider_contact(rider_id) -> Dict[str, Any]:
    try:
        user = User.objects.get(id=rider_id)
    except User.DoesNotExist:
        raise NotFoundError(f"Rider {rider_id} not found")

    return {
        "name": user.display_name,
        "phone": user.phone_number,
    }


def get_driver_contact(driver_id) -> Dict[str, Any]:
    try:
        profile = DriverProfile.objects.select_related("user").get(user_id=driver_id)
    except DriverProfile.DoesNotExist:
        raise NotFoundError(f"Driver {driver_id} not found")

    return {
        "name": profile.user.display_name,
        "phone": profile.user.phone_number,
        "rating": str(profile.rating),
        "vehicle_summary": profile.vehicle_summary,
    }
