from django.contrib import admin
from drivers.models import DriverProfile, DriverEarning


@admin.register(DriverProfile)
class DriverProfileAdmin(admin.ModelAdmin):
    """Admin panel for managing Driver Profiles"""

    list_display = [
        "user",
        "plate_number",
        "vehicle_type",
        "is_online",
        "is_verified",
        "is_busy",
        "rating",
        "total_rides",
        "last_location_update",
    ]

    list_filter = [
        "is_online",
        "is_verified",
        "is_busy",
        "vehicle_type",
    ]

    search_fields = [
        "user__username",
        "plate_number",
    ]

    readonly_fields = [
        "last_location_update",
        "total_rides",
        "total_earnings",
    ]

    ordering = ("user__username",)


@admin.register(DriverEarning)
class DriverEarningAdmin(admin.ModelAdmin):
    list_display = ("ride_id", "driver", "gross_amount", "net_amount", "payment_status", "created_at")
    list_filter = ("payment_status",)
    search_fields = ("ride_id", "driver__username")
