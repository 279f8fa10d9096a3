"""
Ride management service - registry, state machine and lifecycle operations.

    - registry: create/get/lock rides and apply transitions under the ride lock
    - state_machine: legal moves and their side effects
    - ride_lifecycle: inbound operations used by the API views
    - exceptions: typed errors shared by the whole dispatch core
"""

from .exceptions import (
    RideServiceError,
    NotFoundError,
    ConflictError,
    InvalidTransitionError,
    OfferExpiredError,
    AlreadyResolvedError,
    AlreadyBusyError,
    OtpMismatchError,
    DispatchInvariantError,
)

__all__ = [
    "RideServiceError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "OfferExpiredError",
    "AlreadyResolvedError",
    "AlreadyBusyError",
    "OtpMismatchError",
    "DispatchInvariantError",
]
