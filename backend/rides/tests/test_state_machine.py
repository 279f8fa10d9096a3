from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings

from drivers.models import DriverProfile
from rides.models import (
	RideHistory,
	RideOffer,
	RideRequest,
	ACCEPTED,
	CANCELLED,
	COMPLETED,
	DRIVER_ON_WAY,
	REQUESTED,
	RIDER_PICKED_UP,
)
from services.ride_management import registry, state_machine
from services.ride_management.exceptions import InvalidTransitionError, OtpMismatchError
from .factories import make_driver, make_ride, make_rider

ALL_STATUSES = [REQUESTED, ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP, COMPLETED, CANCELLED]


class TransitionTableTests(TestCase):
	def test_legal_moves(self):
		legal = {
			(REQUESTED, ACCEPTED), (REQUESTED, CANCELLED),
			(ACCEPTED, DRIVER_ON_WAY), (ACCEPTED, CANCELLED),
			(DRIVER_ON_WAY, RIDER_PICKED_UP), (DRIVER_ON_WAY, CANCELLED),
			(RIDER_PICKED_UP, COMPLETED),
		}
		for from_status in ALL_STATUSES:
			for to_status in ALL_STATUSES:
				with self.subTest(from_status=from_status, to_status=to_status):
					self.assertEqual(
						state_machine.can_transition(from_status, to_status),
						(from_status, to_status) in legal
					)


class RideStateMachineTests(TestCase):
	def setUp(self):
		self.rider = make_rider()
		self.driver = make_driver('driver_one')

	def test_happy_path_sets_timestamps_and_frees_driver(self):
		ride = make_ride(self.rider)

		registry.transition(ride.ride_id, ACCEPTED, driver_id=self.driver.id)
		ride.refresh_from_db()
		self.assertEqual(ride.driver, self.driver)
		self.assertIsNotNone(ride.accepted_at)
		self.assertTrue(DriverProfile.objects.get(user=self.driver).is_busy)

		registry.transition(ride.ride_id, DRIVER_ON_WAY)
		registry.transition(ride.ride_id, RIDER_PICKED_UP, otp=ride.otp)
		ride.refresh_from_db()
		self.assertIsNotNone(ride.driver_on_way_at)
		self.assertIsNotNone(ride.picked_up_at)
		self.assertIsNotNone(ride.started_at)

		registry.transition(ride.ride_id, COMPLETED)
		ride.refresh_from_db()
		self.assertEqual(ride.status, COMPLETED)
		self.assertEqual(ride.final_fare, Decimal('20.00'))
		self.assertIsNotNone(ride.completed_at)
		self.assertIsNotNone(ride.archived_at)
		self.assertFalse(DriverProfile.objects.get(user=self.driver).is_busy)
		self.assertTrue(RideHistory.objects.filter(ride_id=ride.ride_id, status=COMPLETED).exists())

	def test_illegal_moves_leave_ride_unchanged(self):
		illegal = [
			(REQUESTED, DRIVER_ON_WAY),
			(REQUESTED, COMPLETED),
			(ACCEPTED, RIDER_PICKED_UP),
			(ACCEPTED, COMPLETED),
			(DRIVER_ON_WAY, COMPLETED),
			(RIDER_PICKED_UP, CANCELLED),
			(COMPLETED, CANCELLED),
			(CANCELLED, ACCEPTED),
		]
		for index, (from_status, to_status) in enumerate(illegal):
			with self.subTest(from_status=from_status, to_status=to_status):
				rider = make_rider('rider_%d' % index)
				driver = None if from_status == REQUESTED else make_driver('illegal_%d' % index)
				ride = make_ride(rider, status=from_status, driver=driver)

				with self.assertRaises(InvalidTransitionError):
					registry.transition(ride.ride_id, to_status, driver_id=getattr(driver, 'id', None))

				ride.refresh_from_db()
				self.assertEqual(ride.status, from_status)

	def test_cancel_from_requested_expires_pending_offers(self):
		ride = make_ride(self.rider)
		offer = RideOffer.objects.create(
			ride=ride, driver=self.driver, order=0,
			estimated_fare=ride.estimated_fare, expires_at=ride.requested_at
		)

		registry.transition(ride.ride_id, CANCELLED, reason='changed my mind', cancelled_by='rider')

		offer.refresh_from_db()
		ride.refresh_from_db()
		self.assertEqual(offer.status, 'expired')
		self.assertEqual(ride.cancellation_reason, 'changed my mind')
		self.assertEqual(ride.cancelled_by, 'rider')
		self.assertTrue(RideHistory.objects.filter(ride_id=ride.ride_id, status=CANCELLED).exists())

	def test_cancel_after_acceptance_frees_driver(self):
		ride = make_ride(self.rider, status=DRIVER_ON_WAY, driver=self.driver)

		registry.transition(ride.ride_id, CANCELLED, reason='Cancelled by driver', cancelled_by='driver')

		self.assertFalse(DriverProfile.objects.get(user=self.driver).is_busy)

	def test_stale_instance_loses(self):
		ride = make_ride(self.rider)
		stale = RideRequest.objects.get(pk=ride.pk)

		registry.transition(ride.ride_id, CANCELLED, cancelled_by='rider')

		with self.assertRaises(InvalidTransitionError):
			state_machine.apply_transition(stale, ACCEPTED, driver_id=self.driver.id)
		self.assertFalse(DriverProfile.objects.get(user=self.driver).is_busy)

	def test_wrong_otp_is_rejected(self):
		ride = make_ride(self.rider, status=DRIVER_ON_WAY, driver=self.driver, otp='1234')

		with self.assertRaises(OtpMismatchError):
			registry.transition(ride.ride_id, RIDER_PICKED_UP, otp='9999')

		ride.refresh_from_db()
		self.assertEqual(ride.status, DRIVER_ON_WAY)

	def test_missing_otp_allowed_by_default(self):
		ride = make_ride(self.rider, status=DRIVER_ON_WAY, driver=self.driver)
		registry.transition(ride.ride_id, RIDER_PICKED_UP)
		ride.refresh_from_db()
		self.assertEqual(ride.status, RIDER_PICKED_UP)

	@override_settings(RIDE_REQUIRE_PICKUP_OTP=True)
	def test_missing_otp_rejected_when_required(self):
		ride = make_ride(self.rider, status=DRIVER_ON_WAY, driver=self.driver)
		with self.assertRaises(OtpMismatchError):
			registry.transition(ride.ride_id, RIDER_PICKED_UP)

	def test_notifications_sent_after_commit(self):
		ride = make_ride(self.rider, status=ACCEPTED, driver=self.driver)

		with patch('realtime.notifications.notify') as mock_notify:
			with self.captureOnCommitCallbacks(execute=True):
				registry.transition(ride.ride_id, DRIVER_ON_WAY)
				mock_notify.assert_not_called()

		targets = {call.args[0] for call in mock_notify.call_args_list}
		self.assertEqual(targets, {self.rider.id, self.driver.id})
		self.assertEqual(mock_notify.call_args.args[1], 'ride_status_changed')
