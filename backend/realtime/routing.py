"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.driver_consumer import DriverConsumer
from .consumers.rider_consumer import RiderConsumer

websocket_urlpatterns = [
    # Driver-specific WebSocket endpoint
    # URL: ws://localhost:8000/ws/driver/?token=<jwt>
    re_path(
        r"ws/driver/$",
        DriverConsumer.as_asgi(),
        name="driver-ws"
    ),

    # Rider-specific WebSocket endpoint
    # URL: ws://localhost:8000/ws/rider/?token=<jwt>
    re_path(
        r"ws/rider/$",
        RiderConsumer.as_asgi(),
        name="rider-ws"
    ),
]
