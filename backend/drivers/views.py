from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from drivers import availability
from drivers.models import DriverProfile
from drivers.serializers import (
    DriverAvailabilitySerializer,
    AvailabilityUpdateSerializer,
    LocationUpdateSerializer,
)
from rides.permissions import IsDriver


# Utility: Ensure the driver has a profile
def require_profile(user):
    try:
        return True, user.driver_profile
    except DriverProfile.DoesNotExist:
        return False, Response(
            {"success": False, "error": "not_found", "message": "Driver profile not found"},
            status=404,
        )


class DriverAvailabilityView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        ok, profile = require_profile(request.user)
        if ok is False:
            return profile  # Response object

        return Response(DriverAvailabilitySerializer(profile).data)

    def put(self, request):
        ok, profile = require_profile(request.user)
        if ok is False:
            return profile

        serializer = AvailabilityUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["is_online"]:
            profile = availability.set_online(
                request.user.id, data["latitude"], data["longitude"], address=data.get("address")
            )
        else:
            profile = availability.set_offline(request.user.id)

        return Response({
            "message": "You are online" if profile.is_online else "You are offline",
            "availability": DriverAvailabilitySerializer(profile).data,
        })


#    WS can take over location streaming later; HTTP stays as the fallback.
class DriverLocationUpdateView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        ok, profile = require_profile(request.user)
        if ok is False:
            return profile

        return Response({
            "latitude": float(profile.current_latitude) if profile.current_latitude is not None else None,
            "longitude": float(profile.current_longitude) if profile.current_longitude is not None else None,
            "last_updated": profile.last_location_update,
            "is_online": profile.is_online,
        })

    def post(self, request):
        ok, profile = require_profile(request.user)
        if ok is False:
            return profile

        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lat = serializer.validated_data["latitude"]
        lon = serializer.validated_data["longitude"]

        availability.update_location(
            request.user.id, lat, lon, address=serializer.validated_data.get("address")
        )

        return Response({
            "message": "Location updated",
            "latitude": float(lat),
            "longitude": float(lon),
        })
