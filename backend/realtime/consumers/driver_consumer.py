"""Driver WebSocket consumer for ride offers and location streaming."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer
from drivers import availability
from services.ride_management.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class DriverConsumer(BaseConsumer):
    """
    WebSocket consumer for drivers.

    Handles:
        - Ride offer and ride event notifications
        - Driver location updates (same effect as the HTTP location endpoint)
    """

    allowed_role = "driver"

    async def on_connect(self):
        """Join the driver-specific group as well as the personal one."""
        self.driver_group = f"driver_{self.user_id}"
        await self._join_group(self.driver_group)

        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": "Driver connected successfully",
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "driver_location_update":
            await self._handle_location_update(data)
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    async def _handle_location_update(self, data: Dict[str, Any]):
        try:
            lat = Decimal(str(data["latitude"]))
            lon = Decimal(str(data["longitude"]))
        except (KeyError, InvalidOperation):
            await self.send_error("driver_location_update requires latitude and longitude")
            return

        try:
            await database_sync_to_async(availability.update_location)(
                self.user_id, lat, lon, address=data.get("address")
            )
        except NotFoundError:
            await self.send_error("Driver profile not found")
            return

        await self.send_json({
            "type": "location_updated",
            "latitude": str(lat),
            "longitude": str(lon),
        })
