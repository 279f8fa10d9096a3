from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone

from drivers.models import DriverProfile
from rides.models import RideOffer, ACCEPTED, CANCELLED, REQUESTED
from services.matching import dispatch, resolve_accept, resolve_decline
from services.ride_management import registry
from services.ride_management.exceptions import (
	AlreadyBusyError,
	AlreadyResolvedError,
	InvalidTransitionError,
	NotFoundError,
	OfferExpiredError,
)
from .factories import make_driver, make_ride, make_rider


class DispatchTests(TestCase):
	def setUp(self):
		self.rider = make_rider()
		self.near = make_driver('near', lat_offset='0.001')
		self.mid = make_driver('mid', lat_offset='0.005')
		self.far = make_driver('far', lat_offset='0.010')
		self.ride = make_ride(self.rider)

	def test_creates_one_pending_offer_per_candidate(self):
		count = dispatch(self.ride)

		self.assertEqual(count, 3)
		offers = list(RideOffer.objects.filter(ride=self.ride).order_by('order'))
		self.assertEqual([o.driver_id for o in offers], [self.near.id, self.mid.id, self.far.id])
		for offer in offers:
			self.assertEqual(offer.status, 'pending')
			self.assertEqual(offer.round, 1)
			self.assertEqual(offer.estimated_fare, self.ride.estimated_fare)
			self.assertGreaterEqual(offer.estimated_eta_minutes, 1)
			self.assertGreater(offer.expires_at, timezone.now())

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.dispatch_round, 1)

	@override_settings(RIDE_DISPATCH_MAX_CANDIDATES=2)
	def test_next_round_skips_drivers_already_offered(self):
		self.assertEqual(dispatch(self.ride), 2)
		RideOffer.objects.filter(ride=self.ride).update(status='expired')

		self.assertEqual(dispatch(self.ride), 1)

		second_round = RideOffer.objects.get(ride=self.ride, round=2)
		self.assertEqual(second_round.driver, self.far)

	@override_settings(RIDE_OFFER_TTL_SECONDS=60)
	def test_offer_deadline_uses_ttl(self):
		before = timezone.now()
		dispatch(self.ride)
		offer = RideOffer.objects.filter(ride=self.ride).first()
		self.assertLessEqual(offer.expires_at, timezone.now() + timedelta(seconds=60))
		self.assertGreaterEqual(offer.expires_at, before + timedelta(seconds=60))

	def test_no_candidates_still_counts_round(self):
		DriverProfile.objects.update(is_online=False)

		self.assertEqual(dispatch(self.ride), 0)
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.dispatch_round, 1)

	def test_dispatch_requires_requested_ride(self):
		registry.transition(self.ride.ride_id, CANCELLED, cancelled_by='rider')
		with self.assertRaises(InvalidTransitionError):
			dispatch(self.ride)

	def test_offers_are_pushed_after_commit(self):
		with patch('realtime.notifications.notify') as mock_notify:
			with self.captureOnCommitCallbacks(execute=True):
				dispatch(self.ride)

		self.assertEqual(mock_notify.call_count, 3)
		user_id, kind, payload = mock_notify.call_args.args
		self.assertEqual(kind, 'ride_offer')
		self.assertEqual(payload['ride_id'], self.ride.ride_id)
		self.assertIn('offer_id', payload)


class OfferResolutionTests(TestCase):
	def setUp(self):
		self.rider = make_rider()
		self.driver_one = make_driver('driver_one', lat_offset='0.001')
		self.driver_two = make_driver('driver_two', lat_offset='0.002')
		self.ride = make_ride(self.rider)
		dispatch(self.ride)
		self.offer_one = RideOffer.objects.get(ride=self.ride, driver=self.driver_one)
		self.offer_two = RideOffer.objects.get(ride=self.ride, driver=self.driver_two)

	def test_first_accept_wins_and_expires_siblings(self):
		ride = resolve_accept(self.offer_one.id, self.driver_one.id)

		self.assertEqual(ride.status, ACCEPTED)
		self.assertEqual(ride.driver_id, self.driver_one.id)

		self.offer_one.refresh_from_db()
		self.offer_two.refresh_from_db()
		self.assertEqual(self.offer_one.status, 'accepted')
		self.assertEqual(self.offer_two.status, 'expired')
		self.assertTrue(DriverProfile.objects.get(user=self.driver_one).is_busy)

		with self.assertRaises(OfferExpiredError):
			resolve_accept(self.offer_two.id, self.driver_two.id)
		self.assertFalse(DriverProfile.objects.get(user=self.driver_two).is_busy)

	def test_double_accept_is_already_resolved(self):
		resolve_accept(self.offer_one.id, self.driver_one.id)
		with self.assertRaises(AlreadyResolvedError):
			resolve_accept(self.offer_one.id, self.driver_one.id)

	def test_decline_leaves_siblings_alone(self):
		offer = resolve_decline(self.offer_one.id, self.driver_one.id)

		self.assertEqual(offer.status, 'declined')
		self.offer_two.refresh_from_db()
		self.assertEqual(self.offer_two.status, 'pending')
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, REQUESTED)

		with self.assertRaises(AlreadyResolvedError):
			resolve_accept(self.offer_one.id, self.driver_one.id)

	def test_accept_past_deadline_is_expired(self):
		RideOffer.objects.filter(pk=self.offer_one.pk).update(
			expires_at=timezone.now() - timedelta(seconds=1)
		)
		with self.assertRaises(OfferExpiredError):
			resolve_accept(self.offer_one.id, self.driver_one.id)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, REQUESTED)

	def test_other_drivers_offer_is_not_found(self):
		with self.assertRaises(NotFoundError):
			resolve_accept(self.offer_one.id, self.driver_two.id)
		with self.assertRaises(NotFoundError):
			resolve_decline(999999, self.driver_one.id)

	def test_busy_driver_rolls_back_accept(self):
		# driver_one wins a second rider's ride first
		other_ride = make_ride(make_rider('rider_two'))
		dispatch(other_ride)
		other_offer = RideOffer.objects.get(ride=other_ride, driver=self.driver_one)
		resolve_accept(other_offer.id, self.driver_one.id)

		with self.assertRaises(AlreadyBusyError):
			resolve_accept(self.offer_one.id, self.driver_one.id)

		self.offer_one.refresh_from_db()
		self.offer_two.refresh_from_db()
		self.ride.refresh_from_db()
		self.assertEqual(self.offer_one.status, 'pending')
		self.assertEqual(self.offer_two.status, 'pending')
		self.assertEqual(self.ride.status, REQUESTED)
		self.assertIsNone(self.ride.driver_id)

	def test_cancelled_ride_offers_are_expired(self):
		registry.transition(self.ride.ride_id, CANCELLED, cancelled_by='rider')
		with self.assertRaises(OfferExpiredError):
			resolve_accept(self.offer_one.id, self.driver_one.id)
