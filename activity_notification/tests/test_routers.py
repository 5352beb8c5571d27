"""
Tests for the activity notification database router.
"""
from django.test import SimpleTestCase, override_settings

from activity_notification.models import Notification, Subscription
from activity_notification.routers import ActivityNotificationRouter
from activity_notification.tests.testapp.models import User


class ActivityNotificationRouterTest(SimpleTestCase):

    def setUp(self):
        self.router = ActivityNotificationRouter()

    def test_default_database(self):
        self.assertIsNone(self.router.db_for_read(Notification))
        self.assertIsNone(self.router.db_for_write(Subscription))
        self.assertIsNone(self.router.allow_migrate('default', 'activity_notification'))

    @override_settings(ACTIVITY_NOTIFICATION={'DATABASE': 'notifications'})
    def test_configured_database(self):
        self.assertEqual(self.router.db_for_read(Notification), 'notifications')
        self.assertEqual(self.router.db_for_write(Subscription), 'notifications')
        self.assertIsNone(self.router.db_for_read(User))
        self.assertTrue(self.router.allow_migrate('notifications', 'activity_notification'))
        self.assertFalse(self.router.allow_migrate('default', 'activity_notification'))
        self.assertIsNone(self.router.allow_migrate('default', 'testapp'))

    def test_allow_relation(self):
        self.assertTrue(self.router.allow_relation(Notification(), Notification()))
        self.assertIsNone(self.router.allow_relation(Notification(), User()))
