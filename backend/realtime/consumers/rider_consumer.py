"""Rider WebSocket consumer; receives ride status notifications."""

from .base import BaseConsumer


class RiderConsumer(BaseConsumer):
    """
    WebSocket consumer for riders.

    Riders only listen: every ride event arrives through the personal
    ``user_<id>`` group joined by ``BaseConsumer``.
    """

    allowed_role = "rider"

    async def on_connect(self):
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": "Rider connected successfully",
        })
