"""
Realtime app for pushing ride events over WebSockets.

Key Components:
    - notifications.py: fire-and-forget notification sink (Channels groups)
    - consumers/: WebSocket consumers for drivers and riders
    - middleware.py: JWT authentication for WebSocket connections

Usage:
    from realtime.notifications import notify, notify_on_commit
    from realtime.consumers import DriverConsumer, RiderConsumer
"""
