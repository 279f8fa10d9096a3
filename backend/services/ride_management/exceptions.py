"""Custom exceptions for ride management and dispatch."""


class RideServiceError(Exception):
    """Base class for recoverable ride/dispatch errors surfaced to API callers."""
    default_message = "Ride operation failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(RideServiceError):
    """Raised when a ride, offer or driver cannot be found."""
    default_message = "Not found"


class ConflictError(RideServiceError):
    """Raised when a rider already has an active ride."""
    default_message = "You already have an active ride. Please complete or cancel it first."


class InvalidTransitionError(RideServiceError):
    """Raised when a ride status move is not allowed from its current status."""

    def __init__(self, message: str = "", ride_id=None, from_status=None, to_status=None):
        self.ride_id = ride_id
        self.from_status = from_status
        self.to_status = to_status
        if not message:
            message = f"Cannot move ride {ride_id} from '{from_status}' to '{to_status}'"
        super().__init__(message)


class OfferExpiredError(RideServiceError):
    """Raised when a ride offer has expired."""
    default_message = "This ride offer has timed out"


class AlreadyResolvedError(RideServiceError):
    """Raised when a ride offer was already accepted or declined."""
    default_message = "This ride offer was already answered"


class AlreadyBusyError(RideServiceError):
    """Raised when marking a driver busy who is already busy."""
    default_message = "Driver is already on another ride"


class OtpMismatchError(RideServiceError):
    """Raised when the pickup code does not match the ride's OTP."""
    default_message = "Pickup code does not match"


class DispatchInvariantError(RuntimeError):
    """Internal bug: dispatch state is inconsistent. Not a client error."""
    pass
