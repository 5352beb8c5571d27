"""
Tests for broadcasting notifications through the channel layer.
"""
from unittest.mock import patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import override_settings

from activity_notification.broadcast import broadcast_notification, target_group_name
from activity_notification.tests.base import NotificationTestCase


class BroadcastTest(NotificationTestCase):
    """Test broadcast_notification."""

    def test_target_group_name(self):
        self.assertEqual(target_group_name(self.author), f"activity_notification_testapp_user_{self.author.pk}")

    @override_settings(ACTIVITY_NOTIFICATION={'BROADCAST_CHANNEL_PREFIX': 'notices'})
    def test_target_group_name_with_prefix(self):
        self.assertEqual(target_group_name(self.author), f"notices_testapp_user_{self.author.pk}")

    def test_broadcast_notification(self):
        channel_layer = get_channel_layer()
        channel_name = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)(target_group_name(self.author), channel_name)
        notification = self.create_notification(notifier=self.user)

        self.assertTrue(broadcast_notification(notification))

        message = async_to_sync(channel_layer.receive)(channel_name)
        self.assertEqual(message['type'], 'notification.new')
        self.assertEqual(message['notification']['id'], notification.pk)
        self.assertEqual(message['notification']['key'], 'comment.default')
        self.assertEqual(message['notification']['target_id'], str(self.author.pk))

    def test_broadcast_without_channel_layer(self):
        notification = self.create_notification()
        with patch('activity_notification.broadcast.get_channel_layer', return_value=None):
            self.assertFalse(broadcast_notification(notification))

    @override_settings(ACTIVITY_NOTIFICATION={'BROADCAST_ENABLED': True})
    def test_notify_to_broadcasts(self):
        channel_layer = get_channel_layer()
        channel_name = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)(target_group_name(self.author), channel_name)

        notification = self.create_comment().notify_to(self.author, send_email=False)

        message = async_to_sync(channel_layer.receive)(channel_name)
        self.assertEqual(message['notification']['id'], notification.pk)
