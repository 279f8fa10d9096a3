from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL

class DriverProfile(models.Model):
    """Driver vehicle details and dispatch availability"""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')

    # Vehicle details (vehicle_type is matched against the ride type)
    vehicle_type = models.CharField(max_length=20, default='car')
    vehicle_make = models.CharField(max_length=50, blank=True)
    vehicle_model = models.CharField(max_length=50, blank=True)
    vehicle_color = models.CharField(max_length=30, blank=True)
    plate_number = models.CharField(max_length=20, unique=True)

    # Availability flags: selectable only if online, verified and not busy
    is_online = models.BooleanField(default=False)
    is_verified = models.BooleanField(default=False)
    is_busy = models.BooleanField(default=False)

    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_address = models.TextField(blank=True)
    last_location_update = models.DateTimeField(default=timezone.now)

    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('5.00'))
    total_rides = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'driver_profiles'

    def __str__(self):
        return f"{self.user.username} - {self.plate_number}"

    @property
    def vehicle_summary(self):
        parts = [self.vehicle_color, self.vehicle_make, self.vehicle_model]
        summary = " ".join(p for p in parts if p)
        return f"{summary} ({self.plate_number})" if summary else self.plate_number


class DriverEarning(models.Model):
    """Earnings line recorded once per completed ride"""

    driver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='earnings')
    ride_id = models.CharField(max_length=32, unique=True)

    gross_amount = models.DecimalField(max_digits=10, decimal_places=2)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=10, decimal_places=2)
    net_amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_status = models.CharField(
        max_length=20,
        choices=[('pending', 'Pending'), ('paid', 'Paid')],
        default='pending',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'driver_earnings'
        ordering = ['-created_at']

    def __str__(self):
        return f"Earning {self.ride_id} -> {self.driver} ({self.net_amount})"
