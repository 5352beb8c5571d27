"""
Tests for notification signals and dependent notification handling.
"""
from django.db import transaction
from django.test import override_settings

from activity_notification.exceptions import DeleteRestrictionError
from activity_notification.models import Notification
from activity_notification.signals import notification_created, notification_opened
from activity_notification.tests.base import NotificationTestCase
from activity_notification.tests.testapp.models import Admin, Comment, Member, Post, User


class DependentNotificationsTest(NotificationTestCase):
    """Test deleting targets and notifiables with notifications."""

    def test_delete_target_deletes_notifications(self):
        self.create_notification(target=self.other_user)
        kept = self.create_notification(target=self.author)

        self.other_user.delete()

        self.assertEqual(list(Notification.objects.all()), [kept])

    def test_delete_restricted_target(self):
        admin = Admin.objects.create(user=self.other_user)
        self.create_notification(target=admin)

        with self.assertRaises(DeleteRestrictionError):
            admin.delete()

        self.assertTrue(Admin.objects.filter(pk=admin.pk).exists())

    def test_restricted_delete_keeps_transaction_usable(self):
        admin = Admin.objects.create(user=self.other_user)
        self.create_notification(target=admin)

        with transaction.atomic():
            with self.assertRaises(DeleteRestrictionError):
                admin.delete()
            admin.user.name = 'Renamed'
            admin.user.save()

        self.assertEqual(User.objects.get(pk=self.other_user.pk).name, 'Renamed')
        self.assertEqual(Notification.objects.filtered_by_target(admin).count(), 1)

    def test_cascaded_delete_of_restricted_target(self):
        admin = Admin.objects.create(user=self.other_user)
        self.create_notification(target=admin)

        with transaction.atomic():
            with self.assertRaises(DeleteRestrictionError):
                self.other_user.delete()

        self.assertTrue(User.objects.filter(pk=self.other_user.pk).exists())
        self.assertTrue(Admin.objects.filter(pk=admin.pk).exists())

    def test_delete_restricted_target_without_notifications(self):
        admin = Admin.objects.create(user=self.other_user)
        admin.delete()
        self.assertFalse(Admin.objects.exists())

    def test_delete_notifiable_updates_group(self):
        first_comment = self.create_comment(user=self.user)
        second_comment = self.create_comment(user=self.other_user)
        owner = first_comment.notify_to(self.author, send_email=False)
        member = second_comment.notify_to(self.author, send_email=False)
        self.assertEqual(member.group_owner, owner)

        first_comment.delete()

        member.refresh_from_db()
        self.assertTrue(member.is_group_owner)
        self.assertEqual(list(Notification.objects.all()), [member])

    def test_delete_notifiable_deletes_notifications(self):
        self.create_notification(notifiable=self.article, key='article.default')

        self.article.delete()

        self.assertFalse(Notification.objects.exists())

    def test_delete_cascades_to_comments(self):
        self.create_notification(notifiable=self.create_comment())
        self.assertEqual(Comment.objects.count(), 1)

        self.article.delete()

        self.assertFalse(Comment.objects.exists())
        self.assertFalse(Notification.objects.exists())


class TargetAndNotifiableDeleteTest(NotificationTestCase):
    """Test deleting a model that is both a target and a notifiable."""

    def setUp(self):
        super().setUp()
        self.member = Member.objects.create(user=self.author, name='Author member')

    def test_delete_applies_both_dependencies(self):
        self.create_notification(target=self.member)
        self.create_notification(target=self.user, notifiable=self.member, key='member.default')
        kept = self.create_notification()

        self.member.delete()

        self.assertEqual(list(Notification.objects.all()), [kept])

    def test_delete_restricted_notifiable(self):
        other = Member.objects.create(user=self.user, name='User member')
        self.create_notification(target=other, notifiable=self.member, key='member.default')

        with self.assertRaises(DeleteRestrictionError):
            self.member.delete()

        self.assertTrue(Member.objects.filter(pk=self.member.pk).exists())
        self.assertEqual(Notification.objects.count(), 1)

    def test_delete_notifiable_restricted_for_other_target_type(self):
        self.create_notification(target=self.user, notifiable=self.member, key='member.default')

        self.member.delete()

        self.assertFalse(Member.objects.exists())
        self.assertFalse(Notification.objects.exists())


class TrackedNotificationsTest(NotificationTestCase):
    """Test notifications generated on save of tracked notifiables."""

    def test_tracked_creation(self):
        post = Post.objects.create(user=self.author, title='Draft')

        notifications = Notification.objects.filtered_by_instance(post)
        self.assertCountEqual(
            [n.target for n in notifications], [self.user, self.other_user]
        )
        self.assertEqual(set(notifications.values_list('key', flat=True)), {'post.create'})
        self.assertEqual(notifications.first().notifier, self.author)

    def test_tracked_update(self):
        post = Post.objects.create(user=self.author, title='Draft')
        post.title = 'Published'
        post.save()

        self.assertEqual(
            Notification.objects.filtered_by_instance(post).filtered_by_key('post.update').count(), 2
        )

    def test_untracked_notifiable(self):
        self.create_comment()
        self.assertFalse(Notification.objects.exists())

    @override_settings(ACTIVITY_NOTIFICATION={'ENABLED': False})
    def test_tracking_disabled(self):
        Post.objects.create(user=self.author, title='Draft')
        self.assertFalse(Notification.objects.exists())


class NotificationSignalsTest(NotificationTestCase):
    """Test signals sent by notifications."""

    def test_notification_created_signal(self):
        received = []

        def handler(sender, notification, **kwargs):
            received.append(notification)

        notification_created.connect(handler)
        try:
            notification = self.create_comment().notify_to(self.author, send_email=False)
        finally:
            notification_created.disconnect(handler)

        self.assertEqual(received, [notification])

    def test_notification_opened_signal(self):
        received = []

        def handler(sender, notification, count, **kwargs):
            received.append((notification, count))

        notification = self.create_notification()
        notification_opened.connect(handler)
        try:
            notification.open()
        finally:
            notification_opened.disconnect(handler)

        self.assertEqual(received, [(notification, 1)])
