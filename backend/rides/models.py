import random
import uuid

from django.db import models
from django.conf import settings

REQUESTED = 'requested'
ACCEPTED = 'accepted'
DRIVER_ON_WAY = 'driver_on_way'
RIDER_PICKED_UP = 'rider_picked_up'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

ACTIVE_STATUSES = (REQUESTED, ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP)
TERMINAL_STATUSES = (COMPLETED, CANCELLED)


def generate_ride_id():
    return f"RIDE_{uuid.uuid4().hex[:12].upper()}"


def generate_otp():
    # Four decimal digits; collisions between rides are irrelevant
    return str(random.randint(1000, 9999))


class RideRequest(models.Model):
    """In-flight ride (the registry row); status changes only via the state machine"""

    STATUS_CHOICES = [
        (REQUESTED, 'Requested'),
        (ACCEPTED, 'Accepted'),
        (DRIVER_ON_WAY, 'Driver on the way'),
        (RIDER_PICKED_UP, 'Rider picked up'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    CANCELLED_BY_CHOICES = [
        ('rider', 'Rider'),
        ('driver', 'Driver'),
        ('system', 'System'),
    ]

    ride_id = models.CharField(max_length=32, unique=True, default=generate_ride_id, editable=False)

    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ride_requests'
    )

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_rides'
    )

    # Pickup location
    pickup_address = models.TextField(blank=True)
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)

    # Destination
    destination_address = models.TextField(blank=True)
    destination_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    destination_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    ride_type = models.CharField(max_length=20, default='car')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=REQUESTED)
    otp = models.CharField(max_length=4, default=generate_otp)

    # Fare
    estimated_fare = models.DecimalField(max_digits=10, decimal_places=2)
    final_fare = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    dispatch_round = models.PositiveSmallIntegerField(default=0)

    # Timestamps
    requested_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    driver_on_way_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.TextField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=10, choices=CANCELLED_BY_CHOICES, null=True, blank=True)

    class Meta:
        db_table = 'ride_requests'
        ordering = ['-requested_at']
        constraints = [
            models.UniqueConstraint(
                fields=['rider'],
                condition=models.Q(status__in=ACTIVE_STATUSES),
                name='one_active_ride_per_rider'
            )
        ]

    def __str__(self):
        return f"Ride {self.ride_id} - {self.rider} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class RideOffer(models.Model):
    """One candidate driver's invitation to take a ride."""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('declined', 'Declined'),
        ('expired', 'Expired'),
    ]

    ride = models.ForeignKey(
        RideRequest,
        on_delete=models.CASCADE,
        related_name='offers'
    )

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ride_offers'
    )

    round = models.PositiveSmallIntegerField(default=1)
    order = models.PositiveIntegerField()  # 0 = best candidate in the round

    estimated_fare = models.DecimalField(max_digits=10, decimal_places=2)
    estimated_eta_minutes = models.PositiveIntegerField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    offered_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'ride_offers'
        ordering = ['round', 'order']
        constraints = [
            models.UniqueConstraint(
                fields=['ride', 'driver'],
                name='unique_ride_driver'
            )
        ]
        indexes = [
            models.Index(fields=['status', 'expires_at'], name='ride_offers_status_expiry_idx'),
        ]

    def __str__(self):
        return f"Offer #{self.id} - Ride {self.ride_id} -> Driver {self.driver_id} ({self.status})"


class RideHistory(models.Model):
    """Durable record of a ride that reached a terminal status."""

    ride_id = models.CharField(max_length=32, unique=True)

    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ride_history'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='driven_rides'
    )

    pickup_address = models.TextField(blank=True)
    destination_address = models.TextField(blank=True)
    ride_type = models.CharField(max_length=20)
    status = models.CharField(max_length=20, choices=RideRequest.STATUS_CHOICES)

    estimated_fare = models.DecimalField(max_digits=10, decimal_places=2)
    final_fare = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    requested_at = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=10, null=True, blank=True)

    archived_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ride_history'
        ordering = ['-requested_at']
        verbose_name_plural = 'ride history'

    def __str__(self):
        return f"History {self.ride_id} ({self.status})"
