"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import RideRequest, RideOffer, RideHistory

@admin.register(RideRequest)
class RideRequestAdmin(admin.ModelAdmin):
    """Ride Request admin"""
    list_display = ['ride_id', 'rider', 'driver', 'status', 'dispatch_round', 'requested_at', 'accepted_at', 'completed_at']
    list_filter = ['status', 'ride_type', 'requested_at']
    search_fields = ['ride_id', 'rider__username', 'driver__username', 'pickup_address']
    readonly_fields = ['ride_id', 'requested_at', 'accepted_at', 'completed_at', 'cancelled_at', 'archived_at']
    date_hierarchy = 'requested_at'


@admin.register(RideOffer)
class RideOfferAdmin(admin.ModelAdmin):
    list_display = ("ride", "driver", "round", "order", "status", "offered_at", "expires_at", "responded_at")
    list_filter = ("status",)
    search_fields = ("ride__ride_id", "driver__username")


@admin.register(RideHistory)
class RideHistoryAdmin(admin.ModelAdmin):
    list_display = ("ride_id", "rider", "driver", "status", "final_fare", "archived_at")
    list_filter = ("status",)
    search_fields = ("ride_id", "rider__username", "driver__username")
