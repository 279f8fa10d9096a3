"""Shared fixtures for the ride dispatch tests."""

from decimal import Decimal

from django.contrib.auth import get_user_model

from drivers.models import DriverProfile
from rides.models import RideRequest, ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP

User = get_user_model()

# Connaught Place, New Delhi
PICKUP_LAT = Decimal('28.613900')
PICKUP_LNG = Decimal('77.209000')
# India Gate
DEST_LAT = Decimal('28.612900')
DEST_LNG = Decimal('77.229500')


def make_rider(username='rider', phone_number='9000000000'):
	return User.objects.create_user(
		username=username,
		password='pass1234',
		role='rider',
		phone_number=phone_number
	)


def make_driver(username, lat_offset='0.001', **profile_fields):
	"""Online, verified, free car driver ``lat_offset`` degrees north of the pickup."""
	user = User.objects.create_user(
		username=username,
		password='driver1234',
		role='driver',
		phone_number='9100000000'
	)
	fields = {
		'plate_number': 'DL-%s' % username.upper(),
		'vehicle_type': 'car',
		'vehicle_make': 'Maruti',
		'vehicle_model': 'Dzire',
		'vehicle_color': 'White',
		'is_online': True,
		'is_verified': True,
		'current_latitude': PICKUP_LAT + Decimal(lat_offset),
		'current_longitude': PICKUP_LNG,
	}
	fields.update(profile_fields)
	DriverProfile.objects.create(user=user, **fields)
	return user


def make_ride(rider, status='requested', driver=None, estimated_fare=Decimal('20.00'), **fields):
	"""Insert a ride directly in ``status``; a held driver is flagged busy to match."""
	ride = RideRequest.objects.create(
		rider=rider,
		driver=driver,
		status=status,
		pickup_address='Connaught Place',
		pickup_latitude=PICKUP_LAT,
		pickup_longitude=PICKUP_LNG,
		destination_address='India Gate',
		destination_latitude=DEST_LAT,
		destination_longitude=DEST_LNG,
		estimated_fare=estimated_fare,
		**fields
	)
	if driver is not None and status in (ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP):
		DriverProfile.objects.filter(user=driver).update(is_busy=True)
	return ride
