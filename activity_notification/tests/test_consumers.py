"""
Tests for the notification WebSocket consumer.
"""
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import TransactionTestCase

from activity_notification.broadcast import target_group_name
from activity_notification.routing import websocket_urlpatterns
from activity_notification.tests.base import NotificationFixturesMixin


class NotificationConsumerTest(NotificationFixturesMixin, TransactionTestCase):
    """Test streaming notifications to their target."""

    def setUp(self):
        super().setUp()
        self.application = URLRouter(websocket_urlpatterns)

    def communicator_for(self, user, target_type='users', target_id=None):
        target_id = self.author.pk if target_id is None else target_id
        communicator = WebsocketCommunicator(
            self.application, f'/ws/activity_notification/{target_type}/{target_id}/'
        )
        communicator.scope['user'] = user
        return communicator

    async def test_connect_as_target(self):
        communicator = self.communicator_for(self.author)

        connected, _ = await communicator.connect()

        self.assertTrue(connected)
        await communicator.disconnect()

    async def test_reject_other_user(self):
        communicator = self.communicator_for(self.user)

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4003)

    async def test_reject_missing_target(self):
        communicator = self.communicator_for(self.author, target_id=0)

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4004)

    async def test_reject_malformed_target_id(self):
        communicator = self.communicator_for(self.author, target_id='abc')

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4004)

    async def test_reject_unknown_target_type(self):
        communicator = self.communicator_for(self.author, target_type='articles')

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4004)

    async def test_relay_new_notification(self):
        communicator = self.communicator_for(self.author)
        await communicator.connect()

        await get_channel_layer().group_send(target_group_name(self.author), {
            'type': 'notification.new',
            'notification': {'id': 1, 'key': 'comment.default'},
        })

        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'notification.new')
        self.assertEqual(response['notification']['key'], 'comment.default')
        await communicator.disconnect()

    async def test_open_notification(self):
        notification = await database_sync_to_async(self.create_notification)()
        communicator = self.communicator_for(self.author)
        await communicator.connect()

        await communicator.send_json_to({'type': 'notification.open', 'notification_id': notification.pk})

        response = await communicator.receive_json_from()
        self.assertEqual(response, {
            'type': 'notification.opened',
            'notification_id': notification.pk,
            'count': 1,
        })
        await communicator.disconnect()

    async def test_open_malformed_notification_id(self):
        communicator = self.communicator_for(self.author)
        await communicator.connect()

        await communicator.send_json_to({'type': 'notification.open', 'notification_id': 'abc'})

        response = await communicator.receive_json_from()
        self.assertEqual(response['count'], 0)
        await communicator.disconnect()

    async def test_open_all_notifications(self):
        await database_sync_to_async(self.create_notification)()
        await database_sync_to_async(self.create_notification)()
        communicator = self.communicator_for(self.author)
        await communicator.connect()

        await communicator.send_json_to({'type': 'notification.open_all'})

        response = await communicator.receive_json_from()
        self.assertEqual(response, {'type': 'notification.opened_all', 'count': 2})
        await communicator.disconnect()

    async def test_unknown_message_type(self):
        communicator = self.communicator_for(self.author)
        await communicator.connect()

        await communicator.send_json_to({'type': 'notification.delete'})

        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'error')
        await communicator.disconnect()
