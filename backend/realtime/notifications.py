"""
Notification sink for pushing ride events to connected clients.

Every user has a personal Channels group ``user_<id>``; the consumers join it
on connect. Sends are fire-and-forget: a missing channel layer or a failing
send is logged and reported as ``False``, never raised, so a notification can
not undo a state change that already happened.

Event kinds (the ``type`` key, routed to the consumer handler of the same name):
    ride_offer, offer_expired, ride_accepted, ride_status_changed,
    ride_cancelled, ride_completed
"""

import logging
from functools import partial
from typing import Any, Dict, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

logger = logging.getLogger(__name__)

RIDE_OFFER = "ride_offer"
OFFER_EXPIRED = "offer_expired"
RIDE_ACCEPTED = "ride_accepted"
RIDE_STATUS_CHANGED = "ride_status_changed"
RIDE_CANCELLED = "ride_cancelled"
RIDE_COMPLETED = "ride_completed"

EVENT_KINDS = (
    RIDE_OFFER,
    OFFER_EXPIRED,
    RIDE_ACCEPTED,
    RIDE_STATUS_CHANGED,
    RIDE_CANCELLED,
    RIDE_COMPLETED,
)


def user_group(user_id) -> str:
    return f"user_{user_id}"


def notify(user_id, event_kind: str, payload: Optional[Dict[str, Any]] = None) -> bool:
    """
    Send one event to a user's personal group.

    Returns:
        True if the message was handed to the channel layer, False otherwise
    """
    if not user_id:
        return False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured; dropping %s for user %s", event_kind, user_id)
        return False

    message = {"type": event_kind, **(payload or {})}

    try:
        logger.debug("WS -> user_%s: %s", user_id, message)
        async_to_sync(channel_layer.group_send)(user_group(user_id), message)
    except Exception:
        logger.exception("Failed to send %s to user %s", event_kind, user_id)
        return False
    return True


def notify_on_commit(user_id, event_kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
    """Queue ``notify`` to run once the surrounding transaction commits."""
    transaction.on_commit(partial(notify, user_id, event_kind, dict(payload or {})))


# ---------------------- Payload helpers ----------------------

def _str_or_none(value):
    return None if value is None else str(value)


def ride_payload(ride, message: str = "", **extra) -> Dict[str, Any]:
    """Msgpack-safe summary of a ride for event payloads."""
    payload = {
        "ride_id": ride.ride_id,
        "status": ride.status,
        "rider_id": ride.rider_id,
        "driver_id": ride.driver_id,
        "ride_type": ride.ride_type,
        "pickup_address": ride.pickup_address,
        "pickup_latitude": _str_or_none(ride.pickup_latitude),
        "pickup_longitude": _str_or_none(ride.pickup_longitude),
        "destination_address": ride.destination_address,
        "estimated_fare": _str_or_none(ride.estimated_fare),
        "final_fare": _str_or_none(ride.final_fare),
    }
    if ride.status == "cancelled":
        payload["cancellation_reason"] = ride.cancellation_reason
        payload["cancelled_by"] = ride.cancelled_by
    if message:
        payload["message"] = message
    payload.update(extra)
    return payload


def offer_payload(offer, message: str = "") -> Dict[str, Any]:
    payload = {
        "offer_id": offer.id,
        "ride_id": offer.ride.ride_id,
        "round": offer.round,
        "estimated_fare": _str_or_none(offer.estimated_fare),
        "estimated_eta_minutes": offer.estimated_eta_minutes,
        "expires_at": offer.expires_at.isoformat() if offer.expires_at else None,
        "pickup_address": offer.ride.pickup_address,
        "pickup_latitude": _str_or_none(offer.ride.pickup_latitude),
        "pickup_longitude": _str_or_none(offer.ride.pickup_longitude),
        "destination_address": offer.ride.destination_address,
        "ride_type": offer.ride.ride_type,
    }
    if message:
        payload["message"] = message
    return payload
