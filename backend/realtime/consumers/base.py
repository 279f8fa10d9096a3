"""Base WebSocket consumer with shared functionality for all consumers."""

import logging
from typing import Dict, Any, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.notifications import user_group

logger = logging.getLogger(__name__)


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer with shared connection management and the server event handlers.

    Subclasses may set ``allowed_role`` and override:
        - on_connect(): extra groups / greeting after accept
        - handle_message(msg_type, data): handle incoming messages
    """

    allowed_role = None

    async def connect(self):
        self.user = self.scope.get("user")

        if self.user is None or self.user.is_anonymous:
            await self.close()
            return

        # Basic attributes available to all consumers
        self.user_id = getattr(self.user, "id", None)
        self.role = getattr(self.user, "role", None)

        if self.allowed_role and self.role != self.allowed_role:
            logger.info("Rejected %s socket for user %s (role=%s)", self.allowed_role, self.user_id, self.role)
            await self.close()
            return

        # Track joined groups for cleanup
        self.joined_groups: Set[str] = set()

        # Personal group (targeted server->user messages)
        await self._join_group(user_group(self.user_id))

        await self.accept()
        await self.on_connect()

    async def on_connect(self):
        """Override in subclass for custom connect logic."""
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
        })

    async def disconnect(self, close_code):
        """Leave all joined groups on disconnect."""
        for group in list(getattr(self, "joined_groups", ())):
            await self._leave_group(group)

    async def receive_json(self, data: Dict[str, Any]):
        """Route incoming messages to appropriate handlers."""
        msg_type = data.get("type")
        if not msg_type:
            await self.send_error("Message type is required")
            return

        if msg_type == "ping":
            await self.send_json({"type": "pong"})
            return

        try:
            await self.handle_message(msg_type, data)
        except Exception:
            logger.exception("Error handling message type %s", msg_type)
            await self.send_error(f"Error processing {msg_type}")

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        """Override in subclass to handle specific message types."""
        await self.send_error(f"Unknown message type: {msg_type}")

    # ---------------------- Group Management Helpers ----------------------

    async def _join_group(self, group_name: str):
        """Join a channel group and track it."""
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

    async def _leave_group(self, group_name: str):
        """Leave a channel group and untrack it."""
        await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.discard(group_name)

    # ---------------------- Response Helpers ----------------------

    async def send_error(self, message: str):
        """Send an error message to the client."""
        await self.send_json({
            "type": "error",
            "message": message,
        })

    async def _forward(self, event):
        """Pass a server event to the socket unchanged (``type`` included)."""
        await self.send_json(dict(event))

    # ---------------------- Server Event Handlers ----------------------
    # These handle group_send events from realtime.notifications

    async def ride_offer(self, event):
        """New offer for a driver."""
        await self._forward(event)

    async def offer_expired(self, event):
        """A driver's offer timed out or the ride was taken/cancelled."""
        await self._forward(event)

    async def ride_accepted(self, event):
        await self._forward(event)

    async def ride_status_changed(self, event):
        """Driver on the way / rider picked up."""
        await self._forward(event)

    async def ride_cancelled(self, event):
        await self._forward(event)

    async def ride_completed(self, event):
        await self._forward(event)
