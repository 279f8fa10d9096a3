from decimal import Decimal

from django.test import TestCase, override_settings

from drivers import availability
from drivers.models import DriverProfile
from rides.tests.factories import PICKUP_LAT, PICKUP_LNG, make_driver
from services.ride_management.exceptions import AlreadyBusyError, NotFoundError


class CandidateSelectionTests(TestCase):
	def setUp(self):
		self.near = make_driver('near', lat_offset='0.001')
		self.mid = make_driver('mid', lat_offset='0.005')
		self.far = make_driver('far', lat_offset='0.010')

	def _candidates(self, max_count=5, ride_type='car', exclude=()):
		return availability.candidates(PICKUP_LAT, PICKUP_LNG, ride_type, max_count, exclude=exclude)

	def test_orders_by_distance(self):
		self.assertEqual(self._candidates(), [self.near.id, self.mid.id, self.far.id])

	def test_limits_to_max_count(self):
		self.assertEqual(self._candidates(max_count=2), [self.near.id, self.mid.id])
		self.assertEqual(self._candidates(max_count=0), [])

	def test_skips_unavailable_drivers(self):
		make_driver('offline', lat_offset='0.0001', is_online=False)
		make_driver('unverified', lat_offset='0.0001', is_verified=False)
		make_driver('busy', lat_offset='0.0001', is_busy=True)
		make_driver('bike', lat_offset='0.0001', vehicle_type='bike')
		make_driver('nowhere', current_latitude=None, current_longitude=None)

		self.assertEqual(self._candidates(), [self.near.id, self.mid.id, self.far.id])

	def test_matches_ride_type(self):
		bike = make_driver('bike', lat_offset='0.02', vehicle_type='bike')
		self.assertEqual(self._candidates(ride_type='bike'), [bike.id])

	def test_exclude(self):
		self.assertEqual(self._candidates(exclude=[self.near.id]), [self.mid.id, self.far.id])

	def test_rating_breaks_distance_ties(self):
		low = make_driver('low', lat_offset='0.003', rating=Decimal('4.10'))
		high = make_driver('high', lat_offset='0.003', rating=Decimal('4.90'))

		ids = self._candidates()
		self.assertLess(ids.index(high.id), ids.index(low.id))

	@override_settings(RIDE_CANDIDATE_RADIUS_METERS=700)
	def test_radius_drops_far_drivers(self):
		# 0.005 deg of latitude is roughly 556 m
		self.assertEqual(self._candidates(), [self.near.id, self.mid.id])


class BusyFlagTests(TestCase):
	def setUp(self):
		self.driver = make_driver('driver_one')

	def test_mark_busy_is_compare_and_set(self):
		availability.mark_busy(self.driver.id)
		with self.assertRaises(AlreadyBusyError):
			availability.mark_busy(self.driver.id)

		self.assertTrue(DriverProfile.objects.get(user=self.driver).is_busy)

	def test_mark_free_is_idempotent(self):
		availability.mark_busy(self.driver.id)
		self.assertTrue(availability.mark_free(self.driver.id))
		self.assertFalse(availability.mark_free(self.driver.id))
		self.assertFalse(DriverProfile.objects.get(user=self.driver).is_busy)

	def test_unknown_driver(self):
		with self.assertRaises(NotFoundError):
			availability.mark_busy(999999)
		with self.assertRaises(NotFoundError):
			availability.set_online(999999, PICKUP_LAT, PICKUP_LNG)

	def test_online_offline_and_location(self):
		availability.set_offline(self.driver.id)
		self.assertEqual(availability.candidates(PICKUP_LAT, PICKUP_LNG, 'car', 5), [])

		profile = availability.set_online(self.driver.id, PICKUP_LAT, PICKUP_LNG, address='Janpath')
		self.assertTrue(profile.is_online)
		self.assertEqual(profile.current_address, 'Janpath')

		availability.update_location(self.driver.id, Decimal('28.700000'), Decimal('77.100000'))
		profile.refresh_from_db()
		self.assertEqual(profile.current_latitude, Decimal('28.700000'))
		self.assertEqual(availability.candidates(PICKUP_LAT, PICKUP_LNG, 'car', 5), [self.driver.id])
