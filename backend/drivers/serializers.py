from decimal import Decimal

from rest_framework import serializers
from drivers.models import DriverProfile


class DriverAvailabilitySerializer(serializers.ModelSerializer):
    """
    Driver availability as returned by the API.
    """
    vehicle_summary = serializers.CharField(read_only=True)

    class Meta:
        model = DriverProfile
        fields = [
            "is_online",
            "is_verified",
            "is_busy",
            "vehicle_type",
            "vehicle_summary",
            "current_latitude",
            "current_longitude",
            "current_address",
            "last_location_update",
        ]
        read_only_fields = fields


class LocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating driver GPS location.
    """
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-90"), max_value=Decimal("90"))
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-180"), max_value=Decimal("180"))
    address = serializers.CharField(required=False, allow_blank=True)


class AvailabilityUpdateSerializer(serializers.Serializer):
    """
    Go online (location required) or offline.
    """
    is_online = serializers.BooleanField()
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-90"), max_value=Decimal("90"), required=False)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=Decimal("-180"), max_value=Decimal("180"), required=False)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs["is_online"] and (attrs.get("latitude") is None or attrs.get("longitude") is None):
            raise serializers.ValidationError("latitude and longitude are required to go online")
        return attrs
