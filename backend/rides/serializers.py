from decimal import Decimal

from rest_framework import serializers

from services import directory
from services.ride_management.exceptions import NotFoundError
from .models import RideRequest, RideOffer

RIDE_TYPES = ["car", "bike", "auto", "premium"]

RIDE_FIELDS = [
    'ride_id', 'status', 'ride_type',
    'pickup_address', 'pickup_latitude', 'pickup_longitude',
    'destination_address', 'destination_latitude', 'destination_longitude',
    'estimated_fare', 'final_fare', 'distance_km', 'duration_minutes',
    'requested_at', 'accepted_at', 'driver_on_way_at', 'picked_up_at',
    'started_at', 'completed_at', 'cancelled_at',
    'cancellation_reason', 'cancelled_by',
]


def _contact_or_none(lookup, user_id):
    if not user_id:
        return None
    try:
        return lookup(user_id)
    except NotFoundError:
        return None


class RideRequestSerializer(serializers.ModelSerializer):
    """Ride as the rider sees it: includes the pickup code and driver contact"""
    driver = serializers.SerializerMethodField()

    class Meta:
        model = RideRequest
        fields = RIDE_FIELDS + ['otp', 'driver']
        read_only_fields = fields

    def get_driver(self, obj):
        return _contact_or_none(directory.get_driver_contact, obj.driver_id)


class DriverRideSerializer(serializers.ModelSerializer):
    """Ride as the assigned driver sees it: rider contact, never the pickup code"""
    rider = serializers.SerializerMethodField()

    class Meta:
        model = RideRequest
        fields = RIDE_FIELDS + ['rider']
        read_only_fields = fields

    def get_rider(self, obj):
        return _contact_or_none(directory.get_rider_contact, obj.rider_id)


def serialize_ride_for(user, ride: RideRequest):
    """Pick the serializer matching the user's side of the ride."""
    if ride.rider_id == user.id:
        return RideRequestSerializer(ride).data
    return DriverRideSerializer(ride).data


class RideOfferSerializer(serializers.ModelSerializer):
    """Pending offer shown to a driver"""
    ride_id = serializers.CharField(source='ride.ride_id', read_only=True)
    ride_type = serializers.CharField(source='ride.ride_type', read_only=True)
    pickup_address = serializers.CharField(source='ride.pickup_address', read_only=True)
    pickup_latitude = serializers.DecimalField(source='ride.pickup_latitude', max_digits=9, decimal_places=6, read_only=True)
    pickup_longitude = serializers.DecimalField(source='ride.pickup_longitude', max_digits=9, decimal_places=6, read_only=True)
    destination_address = serializers.CharField(source='ride.destination_address', read_only=True)

    class Meta:
        model = RideOffer
        fields = ['id', 'ride_id', 'round', 'order', 'status',
                  'estimated_fare', 'estimated_eta_minutes',
                  'ride_type', 'pickup_address', 'pickup_latitude', 'pickup_longitude',
                  'destination_address', 'offered_at', 'expires_at']
        read_only_fields = fields


class RideRequestCreateSerializer(serializers.Serializer):
    """Serializer for creating ride requests"""
    pickup_latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-90"), max_value=Decimal("90"))
    pickup_longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-180"), max_value=Decimal("180"))
    pickup_address = serializers.CharField(required=False, allow_blank=True, default="")

    destination_latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-90"), max_value=Decimal("90"), required=False, allow_null=True, default=None)
    destination_longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-180"), max_value=Decimal("180"), required=False, allow_null=True, default=None)
    destination_address = serializers.CharField(required=False, allow_blank=True, default="")

    ride_type = serializers.ChoiceField(choices=RIDE_TYPES, default="car")
    # Optional override of the configured fare estimator
    estimated_fare = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True, default=None)

    def validate(self, attrs):
        has_lat = attrs.get("destination_latitude") is not None
        has_lng = attrs.get("destination_longitude") is not None
        if has_lat != has_lng:
            raise serializers.ValidationError(
                "destination_latitude and destination_longitude must be given together"
            )
        return attrs


class RideCancelSerializer(serializers.Serializer):
    """Serializer for ride cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True)


class RideStatusUpdateSerializer(serializers.Serializer):
    """Driver progress report on an assigned ride"""
    status = serializers.ChoiceField(choices=["on_way", "picked_up"])
    otp = serializers.CharField(required=False, allow_blank=True, max_length=4)


class RideCompleteSerializer(serializers.Serializer):
    final_fare = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)
    distance_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)
    duration_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)
