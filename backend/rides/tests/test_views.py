from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from drivers.models import DriverProfile
from rides.models import RideOffer, RideRequest, ACCEPTED, DRIVER_ON_WAY, RIDER_PICKED_UP
from .factories import PICKUP_LAT, PICKUP_LNG, make_driver, make_ride, make_rider


class RideApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.rider = make_rider()
		self.driver_one = make_driver('driver_one', lat_offset='0.001')
		self.driver_two = make_driver('driver_two', lat_offset='0.002')

	def _as(self, user):
		self.client.force_authenticate(user=user)
		return self.client

	def _request_ride(self):
		return self._as(self.rider).post('/api/rides/request/', {
			'pickup_latitude': str(PICKUP_LAT),
			'pickup_longitude': str(PICKUP_LNG),
			'pickup_address': 'Connaught Place',
			'ride_type': 'car',
			'estimated_fare': '20.00',
		}, format='json')

	def test_request_ride(self):
		response = self._request_ride()

		self.assertEqual(response.status_code, 201)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['driver_candidates'], 2)
		self.assertEqual(response.data['ride']['status'], 'requested')
		self.assertIn('otp', response.data['ride'])

	def test_second_request_is_conflict(self):
		self._request_ride()
		response = self._request_ride()

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'active_ride_exists')
		self.assertFalse(response.data['success'])

	def test_invalid_request_is_400(self):
		response = self._as(self.rider).post('/api/rides/request/', {'pickup_latitude': '123'}, format='json')
		self.assertEqual(response.status_code, 400)

	def test_drivers_cannot_request_rides(self):
		response = self._as(self.driver_one).post('/api/rides/request/', {
			'pickup_latitude': str(PICKUP_LAT),
			'pickup_longitude': str(PICKUP_LNG),
		}, format='json')
		self.assertEqual(response.status_code, 403)

	def test_riders_cannot_accept_offers(self):
		response = self._as(self.rider).post('/api/rides/offers/1/accept/')
		self.assertEqual(response.status_code, 403)

	def test_unauthenticated_is_rejected(self):
		response = APIClient().get('/api/rides/current/')
		self.assertEqual(response.status_code, 401)

	def test_offer_flow(self):
		self._request_ride()

		response = self._as(self.driver_one).get('/api/rides/offers/')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		offer_id = response.data['offers'][0]['id']

		response = self._as(self.driver_one).post('/api/rides/offers/%d/accept/' % offer_id)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], ACCEPTED)
		self.assertNotIn('otp', response.data['ride'])
		self.assertEqual(response.data['ride']['rider']['phone'], self.rider.phone_number)

		sibling = RideOffer.objects.get(driver=self.driver_two)
		response = self._as(self.driver_two).post('/api/rides/offers/%d/accept/' % sibling.id)
		self.assertEqual(response.status_code, 410)
		self.assertEqual(response.data['error'], 'offer_expired')

		response = self._as(self.driver_one).post('/api/rides/offers/%d/accept/' % offer_id)
		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'offer_already_resolved')

		response = self._as(self.rider).get('/api/rides/current/')
		self.assertTrue(response.data['has_active_ride'])
		self.assertTrue(response.data['driver_assigned'])
		self.assertEqual(response.data['ride']['driver']['vehicle_summary'], 'White Maruti Dzire (DL-DRIVER_ONE)')

	def test_decline_offer(self):
		self._request_ride()
		offer = RideOffer.objects.get(driver=self.driver_one)

		response = self._as(self.driver_one).post('/api/rides/offers/%d/decline/' % offer.id)

		self.assertEqual(response.status_code, 200)
		offer.refresh_from_db()
		self.assertEqual(offer.status, 'declined')

	def test_unknown_offer_is_404(self):
		response = self._as(self.driver_one).post('/api/rides/offers/999999/accept/')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'not_found')

	def test_busy_driver_is_409(self):
		other_ride = make_ride(make_rider('rider_two'), status=ACCEPTED, driver=self.driver_one)
		self.assertIsNotNone(other_ride.pk)
		self._request_ride()
		offer = RideOffer.objects.create(
			ride=RideRequest.objects.get(rider=self.rider),
			driver=self.driver_one, order=5, estimated_fare='20.00',
			expires_at=RideOffer.objects.get(driver=self.driver_two).expires_at,
		)

		response = self._as(self.driver_one).post('/api/rides/offers/%d/accept/' % offer.id)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'driver_busy')

	def test_status_and_complete(self):
		ride = make_ride(self.rider, status=ACCEPTED, driver=self.driver_one, otp='4321')
		url = '/api/rides/%s/' % ride.ride_id

		response = self._as(self.driver_one).post(url + 'status/', {'status': 'on_way'}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], DRIVER_ON_WAY)

		response = self._as(self.driver_one).post(url + 'status/', {'status': 'picked_up', 'otp': '0000'}, format='json')
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'otp_mismatch')

		response = self._as(self.driver_one).post(url + 'status/', {'status': 'picked_up', 'otp': '4321'}, format='json')
		self.assertEqual(response.data['ride']['status'], RIDER_PICKED_UP)

		response = self._as(self.driver_one).post(url + 'complete/', {'final_fare': '20.00'}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'completed')

		response = self._as(self.driver_one).post(url + 'complete/', {}, format='json')
		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'invalid_transition')

		response = self._as(self.rider).post(url + 'cancel/', {}, format='json')
		self.assertEqual(response.status_code, 409)

	def test_ride_detail_is_for_participants(self):
		ride = make_ride(self.rider)

		self.assertEqual(self._as(self.rider).get('/api/rides/%s/' % ride.ride_id).status_code, 200)
		response = self._as(self.driver_two).get('/api/rides/%s/' % ride.ride_id)
		self.assertEqual(response.status_code, 404)
		self.assertEqual(self._as(self.rider).get('/api/rides/RIDE_NOPE/').status_code, 404)

	def test_rider_cancels(self):
		response = self._request_ride()
		ride_id = response.data['ride']['ride_id']

		response = self._as(self.rider).post('/api/rides/%s/cancel/' % ride_id, {'reason': 'Plans changed'}, format='json')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'cancelled')
		self.assertEqual(response.data['ride']['cancellation_reason'], 'Plans changed')


class DriverApiTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		self.driver = make_driver('driver_one', is_online=False)
		self.client.force_authenticate(user=self.driver)

	def test_go_online_requires_location(self):
		response = self.client.put('/api/driver/availability/', {'is_online': True}, format='json')
		self.assertEqual(response.status_code, 400)

	def test_go_online_and_offline(self):
		response = self.client.put('/api/driver/availability/', {
			'is_online': True, 'latitude': str(PICKUP_LAT), 'longitude': str(PICKUP_LNG),
		}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['availability']['is_online'])

		response = self.client.put('/api/driver/availability/', {'is_online': False}, format='json')
		self.assertFalse(response.data['availability']['is_online'])

	def test_location_update(self):
		response = self.client.post('/api/driver/location/', {'latitude': '28.700000', 'longitude': '77.100000'}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(str(DriverProfile.objects.get(user=self.driver).current_latitude), '28.700000')

	def test_riders_are_forbidden(self):
		self.client.force_authenticate(user=make_rider())
		self.assertEqual(self.client.get('/api/driver/availability/').status_code, 403)


class HealthCheckTests(TestCase):
	@patch('ridehail_backend.views.redis.Redis.from_url')
	def test_health_check(self, mock_redis):
		response = APIClient().get('/health/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['services']['database'], 'healthy')
		mock_redis.return_value.ping.assert_called_once()
