from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from drivers.models import DriverProfile
from rides.models import RideHistory, RideOffer, RideRequest, CANCELLED, COMPLETED, REQUESTED
from rides.services.sweeper import sweep_stale_rides
from rides.tasks import sweep_stale_rides_task
from services.matching import dispatch, resolve_accept
from .factories import make_driver, make_ride, make_rider


@override_settings(RIDE_DISPATCH_MAX_CANDIDATES=2)
class SweeperTests(TestCase):
	def setUp(self):
		self.rider = make_rider()
		self.near = make_driver('near', lat_offset='0.001')
		self.mid = make_driver('mid', lat_offset='0.005')
		self.far = make_driver('far', lat_offset='0.010')
		self.ride = make_ride(self.rider)
		dispatch(self.ride)

	def test_expired_round_is_redispatched_to_next_drivers(self):
		result = sweep_stale_rides(now=timezone.now() + timedelta(seconds=301))

		self.assertEqual(result.expired_offers, 2)
		self.assertEqual(result.redispatched, 1)
		self.assertEqual(result.cancelled, 0)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, REQUESTED)
		self.assertEqual(self.ride.dispatch_round, 2)
		statuses = dict(RideOffer.objects.filter(ride=self.ride).values_list('driver_id', 'status'))
		self.assertEqual(statuses, {
			self.near.id: 'expired',
			self.mid.id: 'expired',
			self.far.id: 'pending',
		})

	def test_live_offers_are_left_alone(self):
		result = sweep_stale_rides()

		self.assertFalse(result.did_work)
		self.assertEqual(RideOffer.objects.filter(ride=self.ride, status='pending').count(), 2)

	def test_accepted_ride_is_untouched(self):
		offer = RideOffer.objects.get(ride=self.ride, driver=self.near)
		resolve_accept(offer.id, self.near.id)

		result = sweep_stale_rides(now=timezone.now() + timedelta(seconds=301))

		self.assertEqual(result.redispatched, 0)
		self.assertEqual(result.cancelled, 0)
		self.assertEqual(RideRequest.objects.get(pk=self.ride.pk).driver_id, self.near.id)

	def test_request_times_out(self):
		result = sweep_stale_rides(now=timezone.now() + timedelta(seconds=601))

		self.assertEqual(result.expired_offers, 2)
		self.assertEqual(result.cancelled, 1)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, CANCELLED)
		self.assertEqual(self.ride.cancellation_reason, 'request timed out')
		self.assertEqual(self.ride.cancelled_by, 'system')
		self.assertTrue(RideHistory.objects.filter(ride_id=self.ride.ride_id).exists())

	def test_gives_up_after_max_rounds(self):
		RideOffer.objects.filter(ride=self.ride).update(status='declined')
		RideRequest.objects.filter(pk=self.ride.pk).update(dispatch_round=3)

		result = sweep_stale_rides()

		self.assertEqual(result.cancelled, 1)
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, CANCELLED)
		self.assertEqual(self.ride.cancellation_reason, 'no drivers available')

	def test_ride_without_candidates_is_bounded(self):
		DriverProfile.objects.update(is_online=False)
		RideOffer.objects.filter(ride=self.ride).update(status='declined')

		sweep_stale_rides()
		sweep_stale_rides()
		result = sweep_stale_rides()

		self.ride.refresh_from_db()
		self.assertEqual(result.cancelled, 1)
		self.assertEqual(self.ride.status, CANCELLED)
		self.assertEqual(self.ride.dispatch_round, 3)

	def test_one_failing_ride_does_not_stop_the_sweep(self):
		RideOffer.objects.filter(ride=self.ride).update(status='declined')
		make_ride(make_rider('rider_two'), dispatch_round=1)

		with patch('rides.services.sweeper.offer_builder.dispatch', side_effect=[RuntimeError('boom'), 1]):
			with self.assertLogs('rides.services.sweeper', level='ERROR'):
				result = sweep_stale_rides()

		self.assertEqual(result.failed, 1)
		self.assertEqual(result.redispatched, 1)

	def test_ride_awaiting_its_first_round_is_left_alone(self):
		fresh = make_ride(make_rider('rider_two'))

		result = sweep_stale_rides()

		fresh.refresh_from_db()
		self.assertEqual(result.redispatched, 0)
		self.assertEqual(fresh.dispatch_round, 0)
		self.assertFalse(RideOffer.objects.filter(ride=fresh).exists())

	def test_undispatched_ride_still_times_out(self):
		fresh = make_ride(make_rider('rider_two'))

		sweep_stale_rides(now=timezone.now() + timedelta(seconds=601))

		fresh.refresh_from_db()
		self.assertEqual(fresh.status, CANCELLED)
		self.assertEqual(fresh.cancellation_reason, 'request timed out')

	def test_task_and_command_run_a_sweep(self):
		RideOffer.objects.filter(ride=self.ride).update(status='declined')

		self.assertEqual(sweep_stale_rides_task.apply().get()['redispatched'], 1)

		out = StringIO()
		call_command('sweep_rides', stdout=out)
		self.assertIn('re-dispatched', out.getvalue())


class CleanupCommandTests(TestCase):
	def setUp(self):
		self.rider = make_rider()
		self.driver = make_driver('driver_one')

	def test_purges_only_old_archived_rides(self):
		old = make_ride(self.rider, status=COMPLETED, driver=self.driver,
			archived_at=timezone.now() - timedelta(days=40))
		recent = make_ride(make_rider('rider_two'), status=COMPLETED, driver=self.driver,
			archived_at=timezone.now() - timedelta(days=2))
		active = make_ride(make_rider('rider_three'))

		out = StringIO()
		call_command('cleanup_old_data', '--dry-run', stdout=out)
		self.assertIn('DRY RUN', out.getvalue())
		self.assertTrue(RideRequest.objects.filter(pk=old.pk).exists())

		call_command('cleanup_old_data', '--days', '30', stdout=StringIO())

		self.assertFalse(RideRequest.objects.filter(pk=old.pk).exists())
		self.assertTrue(RideRequest.objects.filter(pk=recent.pk).exists())
		self.assertTrue(RideRequest.objects.filter(pk=active.pk).exists())
