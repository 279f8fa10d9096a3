from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from accounts.models import User
from drivers.models import DriverProfile


class DriverProfileInline(admin.StackedInline):
    model = DriverProfile
    can_delete = False
    extra = 0
    fields = ("plate_number", "vehicle_type", "is_verified", "is_online", "is_busy")
    readonly_fields = ("is_online", "is_busy")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Riders and drivers; drivers get their vehicle profile inline"""

    list_display = ("username", "display_name", "role", "phone_number", "is_active")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("username", "first_name", "last_name", "phone_number")

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Ride Role", {"fields": ("role", "phone_number")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Ride Role", {"fields": ("role", "phone_number")}),
    )

    def get_inlines(self, request, obj):
        if obj is not None and obj.role == "driver":
            return [DriverProfileInline]
        return []
