"""
Models for activity notifications.

A ``Notification`` records that a *notifiable* (a comment, an article, ...)
concerns a *target* (a user, an admin, ...), optionally sent by a *notifier*
and bundled in a *group*. All four are generic relations so any model can
play any role.

Notifications sharing target, notifiable type, key and group are collapsed
into one displayed entry: the earliest unopened one is the group owner and
the later ones are its group members.
"""
import logging
from typing import Optional

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .conf import settings
from .managers import NotificationManager, SubscriptionManager
from .utils import printable_type, resource_name

logger = logging.getLogger(__name__)


def subscribe_as_default():
    return settings.SUBSCRIBE_AS_DEFAULT


def subscribe_to_email_as_default():
    return settings.SUBSCRIBE_TO_EMAIL_AS_DEFAULT


class Notification(models.Model):
    """
    Notification of an event on a notifiable for a target.

    Only group members have a ``group_owner``. The owner reaches its members
    through ``group_members``.
    """

    target_content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        related_name='+',
        help_text="Type of the notified target"
    )
    target_object_id = models.CharField(max_length=255, db_index=True)
    target = GenericForeignKey('target_content_type', 'target_object_id')

    notifiable_content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        related_name='+',
        help_text="Type of the record the notification is about"
    )
    notifiable_object_id = models.CharField(max_length=255, db_index=True)
    notifiable = GenericForeignKey('notifiable_content_type', 'notifiable_object_id')

    key = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Notification key, e.g. 'comment.reply'"
    )

    group_content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        related_name='+',
        null=True,
        blank=True
    )
    group_object_id = models.CharField(max_length=255, null=True, blank=True)
    group = GenericForeignKey('group_content_type', 'group_object_id')

    group_owner = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        related_name='group_members',
        null=True,
        blank=True,
        help_text="Owner notification of the group this notification belongs to"
    )

    notifier_content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        related_name='+',
        null=True,
        blank=True
    )
    notifier_object_id = models.CharField(max_length=255, null=True, blank=True)
    notifier = GenericForeignKey('notifier_content_type', 'notifier_object_id')

    parameters = models.JSONField(default=dict, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NotificationManager()

    class Meta:
        db_table = settings.NOTIFICATION_TABLE_NAME
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(
                fields=['target_content_type', 'target_object_id', 'opened_at'],
                name='an_notification_target_idx'
            ),
            models.Index(
                fields=['notifiable_content_type', 'notifiable_object_id'],
                name='an_notification_notifiable_idx'
            ),
            models.Index(
                fields=['group_content_type', 'group_object_id'],
                name='an_notification_group_idx'
            ),
            models.Index(
                fields=['notifier_content_type', 'notifier_object_id'],
                name='an_notification_notifier_idx'
            ),
        ]

    def __str__(self):
        return f"{self.key} for {self.target_content_type.model} {self.target_object_id}"

    # Status

    @property
    def opened(self) -> bool:
        return self.opened_at is not None

    @property
    def unopened(self) -> bool:
        return self.opened_at is None

    @property
    def is_group_member(self) -> bool:
        return self.group_owner_id is not None

    @property
    def is_group_owner(self) -> bool:
        return self.group_owner_id is None

    def open(self, opened_at=None, with_members=True) -> int:
        """
        Open the notification, and its unopened group members unless
        ``with_members`` is False.

        Returns the number of notifications opened by this call.
        """
        if self.opened:
            return 0
        from .signals import notification_opened

        opened_at = opened_at or timezone.now()
        unopened_member_count = 0
        if with_members:
            unopened_member_count = self.group_members.unopened_only().update(opened_at=opened_at)
        self.opened_at = opened_at
        self.save(update_fields=['opened_at', 'updated_at'])

        logger.info(f"Opened notification {self.pk} with {unopened_member_count} group members")
        notification_opened.send(sender=self.__class__, notification=self, count=unopened_member_count + 1)
        return unopened_member_count + 1

    # Group counts

    def _counted_group_owner(self):
        if self.is_group_member and self.group_owner is not None:
            return self.group_owner
        return self

    def _opened_limit(self, limit):
        return settings.OPENED_INDEX_LIMIT if limit is None else limit

    def _unopened_group_member_count(self) -> int:
        return self.group_members.unopened_only().count()

    def _opened_group_member_count(self, limit) -> int:
        if limit == 0:
            return 0
        return self.group_members.opened_only_all().latest_order()[:limit].count()

    def _group_member_notifiers(self, members):
        return (
            members.filter(notifier_content_type=self.notifier_content_type)
            .exclude(notifier_object_id=self.notifier_object_id)
        )

    def _unopened_group_member_notifier_count(self) -> int:
        members = self._group_member_notifiers(self.group_members.unopened_only())
        return members.order_by().values('notifier_object_id').distinct().count()

    def _opened_group_member_notifier_count(self, limit) -> int:
        if limit == 0:
            return 0
        members = self._group_member_notifiers(self.group_members.opened_only_all()).latest_order()[:limit]
        return len(set(members.values_list('notifier_object_id', flat=True)))

    def group_member_count(self, limit=None) -> int:
        """
        Count of group members of this notification's group.

        For an opened group only the latest ``limit`` opened members are
        counted (``OPENED_INDEX_LIMIT`` by default).
        """
        notification = self._counted_group_owner()
        if notification.opened:
            return notification._opened_group_member_count(self._opened_limit(limit))
        return notification._unopened_group_member_count()

    def group_notification_count(self, limit=None) -> int:
        return self.group_member_count(limit) + 1

    def group_member_notifier_count(self, limit=None) -> int:
        """Count of distinct group member notifiers other than the owner's notifier."""
        notification = self._counted_group_owner()
        if notification.opened:
            return notification._opened_group_member_notifier_count(self._opened_limit(limit))
        return notification._unopened_group_member_notifier_count()

    def group_notifier_count(self, limit=None) -> int:
        return self.group_member_notifier_count(limit) + 1

    def group_member_exists(self, limit=None) -> bool:
        return self.group_member_count(limit) > 0

    def group_member_notifier_exists(self, limit=None) -> bool:
        return self.group_member_notifier_count(limit) > 0

    def latest_group_member(self):
        notification = self._counted_group_owner()
        if notification.group_member_exists():
            return notification.group_members.latest_order().first()
        return self

    def remove_from_group(self) -> Optional['Notification']:
        """
        Hand the group over to the earliest member.

        Returns the new group owner, or None when there are no members.
        """
        new_group_owner = self.group_members.earliest_order().first()
        if new_group_owner is not None:
            new_group_owner.group_owner = None
            new_group_owner.save(update_fields=['group_owner', 'updated_at'])
            self.group_members.update(group_owner=new_group_owner)
            logger.info(f"Moved group of notification {self.pk} to {new_group_owner.pk}")
        return new_group_owner

    def delete_keeping_group(self, *args, **kwargs):
        self.remove_from_group()
        return self.delete(*args, **kwargs)

    # Descriptions

    @property
    def target_resource_name(self) -> str:
        return resource_name(self.target_content_type.model_class())

    def notifiable_path(self) -> Optional[str]:
        notifiable = self.notifiable
        if notifiable is None or not hasattr(notifiable, 'notifiable_path'):
            return None
        return notifiable.notifiable_path(self.target_resource_name, self.key)

    def printable_target_name(self) -> str:
        target = self.target
        if hasattr(target, 'printable_target_name'):
            return target.printable_target_name()
        return str(target)

    def printable_notifiable_name(self) -> str:
        notifiable = self.notifiable
        if hasattr(notifiable, 'printable_notifiable_name'):
            return notifiable.printable_notifiable_name(self.target, self.key)
        return str(notifiable)

    def printable_notifier_name(self) -> Optional[str]:
        notifier = self.notifier
        if notifier is None:
            return None
        if hasattr(notifier, 'printable_notifier_name'):
            return notifier.printable_notifier_name()
        return str(notifier)

    def printable_group_name(self) -> Optional[str]:
        group = self.group
        if group is None:
            return None
        if hasattr(group, 'printable_group_name'):
            return group.printable_group_name()
        return str(group)

    def printable_type(self) -> str:
        return printable_type(self)

    # Delivery

    def send_notification_email(self, send_later=True, fallback=None) -> bool:
        """
        Send the notification email when the target and notifiable allow
        email for the key and the target subscribes to it.

        Returns True when the email was sent or queued.
        """
        target = self.target
        notifiable = self.notifiable
        if not (target.notification_email_allowed(notifiable, self.key)
                and notifiable.notification_email_allowed(target, self.key)
                and target.subscribes_to_notification_email(self.key)):
            return False

        from . import mailer, tasks
        if send_later:
            tasks.send_notification_email_task.delay(self.pk, fallback)
        else:
            mailer.send_notification_email(self, fallback=fallback)
        return True

    def broadcast(self) -> bool:
        """Push the notification to the target's channel group when allowed."""
        if not settings.BROADCAST_ENABLED:
            return False
        target = self.target
        if not target.broadcast_allowed(self.notifiable, self.key):
            return False
        from .broadcast import broadcast_notification
        return broadcast_notification(self)


class Subscription(models.Model):
    """
    Subscription of a target to a notification key.

    A target without a subscription for a key falls back to
    ``SUBSCRIBE_AS_DEFAULT`` and ``SUBSCRIBE_TO_EMAIL_AS_DEFAULT``.
    """

    target_content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        related_name='+'
    )
    target_object_id = models.CharField(max_length=255, db_index=True)
    target = GenericForeignKey('target_content_type', 'target_object_id')

    key = models.CharField(max_length=255, db_index=True)

    subscribing = models.BooleanField(default=subscribe_as_default)
    subscribing_to_email = models.BooleanField(default=subscribe_to_email_as_default)
    subscribed_at = models.DateTimeField(null=True, blank=True)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)
    subscribed_to_email_at = models.DateTimeField(null=True, blank=True)
    unsubscribed_to_email_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SubscriptionManager()

    class Meta:
        db_table = settings.SUBSCRIPTION_TABLE_NAME
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['target_content_type', 'target_object_id', 'key'],
                name='an_unique_target_subscription_key'
            ),
        ]

    def __str__(self):
        state = 'subscribing' if self.subscribing else 'unsubscribed'
        return f"{self.key} ({state}) for {self.target_content_type.model} {self.target_object_id}"

    def clean(self):
        if self.subscribing_to_email and not self.subscribing:
            raise ValidationError({
                'subscribing_to_email': "Cannot subscribe to email without subscribing to the notification"
            })

    def save(self, *args, **kwargs):
        if self._state.adding:
            now = timezone.now()
            if self.subscribing:
                self.subscribed_at = self.subscribed_at or now
            else:
                self.unsubscribed_at = self.unsubscribed_at or now
            if self.subscribing_to_email:
                self.subscribed_to_email_at = self.subscribed_to_email_at or now
            else:
                self.unsubscribed_to_email_at = self.unsubscribed_to_email_at or now
        super().save(*args, **kwargs)

    def _update(self, **attributes):
        for name, value in attributes.items():
            setattr(self, name, value)
        self.full_clean()
        self.save()
        logger.info(f"Updated subscription {self.pk}: {', '.join(attributes)}")
        return self

    def subscribe(self, subscribed_at=None, with_email_subscription=None):
        subscribed_at = subscribed_at or timezone.now()
        if with_email_subscription is None:
            with_email_subscription = settings.SUBSCRIBE_TO_EMAIL_AS_DEFAULT
        attributes = {'subscribing': True, 'subscribed_at': subscribed_at}
        if with_email_subscription:
            attributes.update(subscribing_to_email=True, subscribed_to_email_at=subscribed_at)
        return self._update(**attributes)

    def unsubscribe(self, unsubscribed_at=None):
        unsubscribed_at = unsubscribed_at or timezone.now()
        return self._update(
            subscribing=False,
            unsubscribed_at=unsubscribed_at,
            subscribing_to_email=False,
            unsubscribed_to_email_at=unsubscribed_at,
        )

    def subscribe_to_email(self, subscribed_to_email_at=None):
        return self._update(
            subscribing_to_email=True,
            subscribed_to_email_at=subscribed_to_email_at or timezone.now(),
        )

    def unsubscribe_to_email(self, unsubscribed_to_email_at=None):
        return self._update(
            subscribing_to_email=False,
            unsubscribed_to_email_at=unsubscribed_to_email_at or timezone.now(),
        )
