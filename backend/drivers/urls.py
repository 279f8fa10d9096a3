from django.urls import path
from .views import (
    DriverAvailabilityView,
    DriverLocationUpdateView,
)

urlpatterns = [
    path("availability/", DriverAvailabilityView.as_view(), name="driver-availability"),
    path("location/", DriverLocationUpdateView.as_view(), name="driver-location"),
]
