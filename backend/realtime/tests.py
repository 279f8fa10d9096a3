from unittest.mock import patch

from asgiref.sync import sync_to_async
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase, TestCase, TransactionTestCase

from realtime import notifications
from realtime.consumers import DriverConsumer, RiderConsumer
from realtime.middleware import JWTAuthMiddleware

User = get_user_model()


class NotifyTests(SimpleTestCase):
	async def test_notify_reaches_the_users_group(self):
		layer = get_channel_layer()
		channel = await layer.new_channel()
		await layer.group_add('user_42', channel)

		sent = await sync_to_async(notifications.notify)(42, 'ride_accepted', {'ride_id': 'RIDE_ABC'})
		message = await layer.receive(channel)

		self.assertTrue(sent)
		self.assertEqual(message, {'type': 'ride_accepted', 'ride_id': 'RIDE_ABC'})

	def test_missing_channel_layer_is_not_an_error(self):
		with patch('realtime.notifications.get_channel_layer', return_value=None):
			with self.assertLogs('realtime.notifications', level='WARNING'):
				self.assertFalse(notifications.notify(42, 'ride_cancelled', {}))

	def test_no_recipient(self):
		self.assertFalse(notifications.notify(None, 'ride_cancelled'))


class NotifyOnCommitTests(TestCase):
	def test_sent_only_after_commit(self):
		with patch('realtime.notifications.notify') as mock_notify:
			with self.captureOnCommitCallbacks(execute=True) as callbacks:
				notifications.notify_on_commit(5, 'offer_expired', {'ride_id': 'RIDE_ABC'})
				mock_notify.assert_not_called()

		self.assertEqual(len(callbacks), 1)
		mock_notify.assert_called_once_with(5, 'offer_expired', {'ride_id': 'RIDE_ABC'})


class ConsumerTests(TransactionTestCase):
	def _communicator(self, consumer, path, user):
		communicator = WebsocketCommunicator(consumer.as_asgi(), path)
		communicator.scope['user'] = user
		return communicator

	async def test_driver_connects_and_receives_offers(self):
		driver = User(id=7, username='driver_seven', role='driver')
		communicator = self._communicator(DriverConsumer, '/ws/driver/', driver)

		connected, _ = await communicator.connect()
		self.assertTrue(connected)
		greeting = await communicator.receive_json_from()
		self.assertEqual(greeting['type'], 'connection_established')
		self.assertEqual(greeting['user_id'], 7)

		await get_channel_layer().group_send('user_7', {'type': 'ride_offer', 'offer_id': 3, 'ride_id': 'RIDE_ABC'})
		event = await communicator.receive_json_from()
		self.assertEqual(event, {'type': 'ride_offer', 'offer_id': 3, 'ride_id': 'RIDE_ABC'})

		await communicator.disconnect()

	async def test_ping_and_bad_location(self):
		driver = User(id=8, username='driver_eight', role='driver')
		communicator = self._communicator(DriverConsumer, '/ws/driver/', driver)
		await communicator.connect()
		await communicator.receive_json_from()

		await communicator.send_json_to({'type': 'ping'})
		self.assertEqual(await communicator.receive_json_from(), {'type': 'pong'})

		await communicator.send_json_to({'type': 'driver_location_update'})
		self.assertEqual((await communicator.receive_json_from())['type'], 'error')

		await communicator.disconnect()

	async def test_rider_cannot_use_driver_socket(self):
		rider = User(id=9, username='rider_nine', role='rider')
		communicator = self._communicator(DriverConsumer, '/ws/driver/', rider)

		connected, _ = await communicator.connect()
		self.assertFalse(connected)

	async def test_rider_socket_gets_status_events(self):
		rider = User(id=10, username='rider_ten', role='rider')
		communicator = self._communicator(RiderConsumer, '/ws/rider/', rider)
		connected, _ = await communicator.connect()
		self.assertTrue(connected)
		await communicator.receive_json_from()

		await get_channel_layer().group_send('user_10', {'type': 'ride_status_changed', 'status': 'driver_on_way'})
		event = await communicator.receive_json_from()
		self.assertEqual(event['status'], 'driver_on_way')

		await communicator.disconnect()

	async def test_anonymous_is_rejected(self):
		communicator = self._communicator(RiderConsumer, '/ws/rider/', AnonymousUser())
		connected, _ = await communicator.connect()
		self.assertFalse(connected)


class JWTAuthMiddlewareTests(TransactionTestCase):
	async def test_bad_token_is_anonymous(self):
		seen = {}

		async def app(scope, receive, send):
			seen['user'] = scope['user']

		middleware = JWTAuthMiddleware(app)
		await middleware({'type': 'websocket', 'query_string': b'token=not-a-jwt'}, None, None)

		self.assertTrue(seen['user'].is_anonymous)
