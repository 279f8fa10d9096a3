import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services.ride_management import ride_lifecycle
from services.ride_management.exceptions import (
    RideServiceError,
    NotFoundError,
    ConflictError,
    InvalidTransitionError,
    OfferExpiredError,
    AlreadyResolvedError,
    AlreadyBusyError,
    OtpMismatchError,
)
from .permissions import IsRider, IsDriver
from .serializers import (
    RideRequestSerializer,
    DriverRideSerializer,
    RideOfferSerializer,
    RideRequestCreateSerializer,
    RideCancelSerializer,
    RideStatusUpdateSerializer,
    RideCompleteSerializer,
    serialize_ride_for,
)

logger = logging.getLogger(__name__)

# Typed service error -> (error code, HTTP status)
ERROR_RESPONSES = {
    NotFoundError: ('not_found', status.HTTP_404_NOT_FOUND),
    ConflictError: ('active_ride_exists', status.HTTP_409_CONFLICT),
    InvalidTransitionError: ('invalid_transition', status.HTTP_409_CONFLICT),
    OfferExpiredError: ('offer_expired', status.HTTP_410_GONE),
    AlreadyResolvedError: ('offer_already_resolved', status.HTTP_409_CONFLICT),
    AlreadyBusyError: ('driver_busy', status.HTTP_409_CONFLICT),
    OtpMismatchError: ('otp_mismatch', status.HTTP_400_BAD_REQUEST),
}


def ride_error_response(exc: RideServiceError) -> Response:
    """Translate a service error into the API's error envelope."""
    code, http_status = 'ride_error', status.HTTP_400_BAD_REQUEST
    for klass in type(exc).__mro__:
        if klass in ERROR_RESPONSES:
            code, http_status = ERROR_RESPONSES[klass]
            break

    logger.debug("Ride API error %s: %s", code, exc)
    return Response(
        {
            'success': False,
            'error': code,
            'message': exc.message,
        },
        status=http_status
    )


# ==================== Rider Ride APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsRider])
def request_ride(request):
    """Create a new ride request and notify the nearest drivers"""
    serializer = RideRequestCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_lifecycle.request_ride(request.user, **serializer.validated_data)
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': RideRequestSerializer(result.ride).data,
        'message': result.message,
        'driver_candidates': result.extra['driver_candidates'],
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_ride(request):
    """
    Current active ride of the rider or driver (POLLING ENDPOINT)

    Apps poll this to follow ride status when the socket is down.
    """
    result = ride_lifecycle.get_current_ride(request.user)
    ride = result.ride

    if not ride:
        return Response({
            'has_active_ride': False,
            'message': result.message,
        })

    return Response({
        'has_active_ride': True,
        'ride': serialize_ride_for(request.user, ride),
        'status': ride.status,
        'driver_assigned': ride.driver_id is not None,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_detail(request, ride_id):
    try:
        result = ride_lifecycle.get_ride(request.user, ride_id)
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': serialize_ride_for(request.user, result.ride),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_ride(request, ride_id):
    """
    Cancel a ride as its rider or its assigned driver.

    Not possible once the rider has been picked up.
    """
    serializer = RideCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_lifecycle.cancel_ride(
            request.user, ride_id, reason=serializer.validated_data.get('reason') or None
        )
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': serialize_ride_for(request.user, result.ride),
        'message': result.message,
    })


# ==================== Driver Ride APIs ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDriver])
def pending_offers(request):
    """Open ride offers for this driver"""
    result = ride_lifecycle.get_pending_offers(request.user)
    offers = result.extra['offers']
    return Response({
        'count': len(offers),
        'offers': RideOfferSerializer(offers, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def accept_offer(request, offer_id):
    """Accept a ride offer. The first driver to accept gets the ride."""
    try:
        result = ride_lifecycle.accept_offer(request.user, offer_id)
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': DriverRideSerializer(result.ride).data,
        'message': result.message,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def decline_offer(request, offer_id):
    try:
        result = ride_lifecycle.decline_offer(request.user, offer_id)
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'offer_id': result.extra['offer_id'],
        'message': result.message,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def update_ride_status(request, ride_id):
    """Driver reports 'on_way' or 'picked_up' (with the rider's pickup code)"""
    serializer = RideStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_lifecycle.report_driver_status(
            request.user,
            ride_id,
            serializer.validated_data['status'],
            otp=serializer.validated_data.get('otp') or None,
        )
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': DriverRideSerializer(result.ride).data,
        'message': result.message,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def complete_ride(request, ride_id):
    """Complete a ride when the rider reaches the destination"""
    serializer = RideCompleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_lifecycle.complete_ride(request.user, ride_id, **serializer.validated_data)
    except RideServiceError as exc:
        return ride_error_response(exc)

    return Response({
        'success': True,
        'ride': DriverRideSerializer(result.ride).data,
        'message': result.message,
    })
