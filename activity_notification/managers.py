"""
QuerySets and managers for notifications and subscriptions.

Every filter returns a new QuerySet so they can be chained:

    Notification.objects.filtered_by_target(user).unopened_only().filtered_by_group(article)

Filters that take a limit (``opened_only``, ``opened_index``) slice the
QuerySet, so they have to come last in the chain.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from django.db import models
from django.db.models import Q
from django.utils import timezone

from .conf import settings
from .utils import (
    content_type_for, is_blank, object_id_of, parse_time, resource_name, split_type_name
)

logger = logging.getLogger(__name__)

# Options consumed by notify_to, every other keyword goes to the parameters
AVAILABLE_OPTIONS = (
    'key', 'group', 'group_expiry_delay', 'notifier', 'parameters',
    'send_email', 'send_later', 'publish_optional_targets',
)


def _polymorphic_lookup(field: str, value) -> Optional[Dict[str, Any]]:
    """
    Build lookup kwargs matching the content type of a polymorphic field.

    ``value`` may be a model class, a model instance or an ``app_label.model``
    name. Returns None when a name cannot be interpreted.
    """
    if isinstance(value, str):
        parts = split_type_name(value)
        if parts is None:
            return None
        app_label, model = parts
        return {
            f'{field}_content_type__app_label': app_label,
            f'{field}_content_type__model': model,
        }
    return {f'{field}_content_type': content_type_for(value)}


def _instance_lookup(field: str, instance) -> Dict[str, Any]:
    return {
        f'{field}_content_type': content_type_for(instance),
        f'{field}_object_id': object_id_of(instance),
    }


class NotificationQuerySet(models.QuerySet):
    """Chainable filters for notifications."""

    def group_owners_only(self):
        return self.filter(group_owner__isnull=True)

    def group_members_only(self):
        return self.filter(group_owner__isnull=False)

    def unopened_only(self):
        return self.filter(opened_at__isnull=True)

    def opened_only_all(self):
        """Opened notifications without limit. Be careful with large tables."""
        return self.filter(opened_at__isnull=False)

    def opened_only(self, limit):
        if limit == 0:
            return self.none()
        target_index = self.opened_only_all()
        return target_index[:limit] if limit else target_index

    def unopened_index(self, reverse=False, with_group_members=False):
        target_index = self.unopened_only() if with_group_members else self.unopened_only().group_owners_only()
        return target_index.earliest_order() if reverse else target_index.latest_order()

    def opened_index(self, limit, reverse=False, with_group_members=False):
        if limit == 0:
            return self.none()
        target_index = self.opened_only_all() if with_group_members else self.opened_only_all().group_owners_only()
        target_index = target_index.earliest_order() if reverse else target_index.latest_order()
        return target_index[:limit] if limit else target_index

    def unopened_index_group_members_only(self):
        owner_ids = list(self.unopened_index().values_list('id', flat=True))
        return self.group_members_of_owner_ids_only(owner_ids)

    def opened_index_group_members_only(self, limit):
        owner_ids = list(self.opened_index(limit).values_list('id', flat=True))
        return self.group_members_of_owner_ids_only(owner_ids)

    def within_expiration_only(self, expiry_delay):
        if not isinstance(expiry_delay, timedelta):
            expiry_delay = timedelta(seconds=expiry_delay)
        return self.filter(created_at__gt=timezone.now() - expiry_delay)

    def group_members_of_owner_ids_only(self, owner_ids: Iterable):
        return self.filter(group_owner_id__in=list(owner_ids))

    def filtered_by_target(self, target):
        return self.filter(**_instance_lookup('target', target))

    def filtered_by_instance(self, notifiable):
        return self.filter(**_instance_lookup('notifiable', notifiable))

    def filtered_by_notifier(self, notifier):
        return self.filter(**_instance_lookup('notifier', notifier))

    def filtered_by_type(self, notifiable_type):
        lookup = _polymorphic_lookup('notifiable', notifiable_type)
        return self.none() if lookup is None else self.filter(**lookup)

    def filtered_by_target_type(self, target_type):
        lookup = _polymorphic_lookup('target', target_type)
        return self.none() if lookup is None else self.filter(**lookup)

    def filtered_by_group(self, group):
        if group is None:
            return self.filter(group_content_type__isnull=True, group_object_id__isnull=True)
        return self.filter(**_instance_lookup('group', group))

    def filtered_by_group_type_and_id(self, group_type, group_id):
        lookup = _polymorphic_lookup('group', group_type)
        if lookup is None:
            return self.none()
        return self.filter(group_object_id=str(group_id), **lookup)

    def filtered_by_key(self, key):
        return self.filter(key=key)

    def later_than(self, created_time):
        return self.filter(created_at__gt=parse_time(created_time))

    def earlier_than(self, created_time):
        return self.filter(created_at__lt=parse_time(created_time))

    def filtered_by_options(self, options: Optional[Dict[str, Any]] = None):
        """
        Apply the filter options accepted by notification indexes.

        Recognized keys are ``filtered_by_type``, ``filtered_by_group``,
        ``filtered_by_group_type`` with ``filtered_by_group_id``,
        ``filtered_by_key``, ``later_than``, ``earlier_than`` and
        ``custom_filter`` (a dict of lookups or a Q object). Other keys are
        ignored.
        """
        options = options or {}
        queryset = self
        if 'filtered_by_type' in options:
            queryset = queryset.filtered_by_type(options['filtered_by_type'])
        if 'filtered_by_group' in options:
            queryset = queryset.filtered_by_group(options['filtered_by_group'])
        if 'filtered_by_group_type' in options and 'filtered_by_group_id' in options:
            queryset = queryset.filtered_by_group_type_and_id(
                options['filtered_by_group_type'], options['filtered_by_group_id']
            )
        if 'filtered_by_key' in options:
            queryset = queryset.filtered_by_key(options['filtered_by_key'])
        if 'later_than' in options:
            queryset = queryset.later_than(options['later_than'])
        if 'earlier_than' in options:
            queryset = queryset.earlier_than(options['earlier_than'])
        if 'custom_filter' in options:
            custom_filter = options['custom_filter']
            queryset = queryset.filter(custom_filter) if isinstance(custom_filter, Q) else queryset.filter(**custom_filter)
        return queryset

    def with_target(self):
        return self.prefetch_related('target')

    def with_notifiable(self):
        return self.prefetch_related('notifiable')

    def with_group(self):
        return self.prefetch_related('group')

    def with_group_owner(self):
        return self.select_related('group_owner')

    def with_group_members(self):
        return self.prefetch_related('group_members')

    def with_notifier(self):
        return self.prefetch_related('notifier')

    def with_attributes(self):
        return self.with_target().with_notifiable().with_group().with_notifier().with_group_owner()

    def latest_order(self):
        return self.order_by('-created_at', '-id')

    def earliest_order(self):
        return self.order_by('created_at', 'id')

    def uniq_keys(self) -> List[str]:
        """Distinct keys, newest first unless the queryset is explicitly ordered."""
        queryset = self if self.query.order_by or self.query.is_sliced else self.latest_order()
        return list(dict.fromkeys(queryset.values_list('key', flat=True)))

    def open_all(self, opened_at=None) -> int:
        return self.update(opened_at=opened_at or timezone.now())


class NotificationManager(models.Manager.from_queryset(NotificationQuerySet)):
    """
    Manager for notifications.

    Besides the QuerySet filters it provides the operations that create and
    bulk-update notifications for targets.
    """

    def available_options(self):
        return list(AVAILABLE_OPTIONS)

    def notify(self, target_type: str, notifiable, **options):
        """
        Generate notifications for every target of ``target_type`` configured
        on the notifiable.

            Notification.objects.notify('users', comment, key='comment.reply')

        Returns the list of generated notifications.
        """
        if options.pop('notify_later', False):
            notifiable.notify_later(target_type, **options)
            return []
        targets = notifiable.notification_targets(target_type, options)
        if is_blank(targets):
            return []
        return self.notify_all(targets, notifiable, **options)

    def notify_all(self, targets, notifiable, **options):
        notifications = []
        for target in targets:
            notification = self.notify_to(target, notifiable, **options)
            if notification is not None:
                notifications.append(notification)
        return notifications

    def notify_to(self, target, notifiable, **options):
        """
        Generate a notification for a single target.

        Sends the notification email (``send_email``, default True) in the
        background unless ``send_later`` is False, and broadcasts it
        (``publish_optional_targets``, default True). Returns None when the
        target does not subscribe to the notification key or notifications
        are disabled.
        """
        if not settings.ENABLED:
            return None
        send_email = options.pop('send_email', True)
        send_later = options.pop('send_later', True)
        publish = options.pop('publish_optional_targets', True)

        notification = self.generate_notification(target, notifiable, **options)
        if notification is None:
            return None

        if send_email:
            notification.send_notification_email(send_later=send_later)
        if publish:
            notification.broadcast()
        return notification

    def generate_notification(self, target, notifiable, **options):
        key = options.pop('key', None) or notifiable.default_notification_key()
        if not target.subscribes_to_notification(key):
            logger.debug(f"{target} does not subscribe to {key}, skipping notification")
            return None
        return self.store_notification(target, notifiable, key, **options)

    def store_notification(self, target, notifiable, key, **options):
        from .signals import notification_created

        target_type = resource_name(target)
        group = options.pop('group', None) or notifiable.notification_group(target_type, key)
        group_expiry_delay = (
            options.pop('group_expiry_delay', None)
            or notifiable.notification_group_expiry_delay(target_type, key)
        )
        notifier = options.pop('notifier', None) or notifiable.notifier_for(target_type, key)

        parameters = dict(options.pop('parameters', None) or {})
        parameters.update({k: v for k, v in options.items() if k not in AVAILABLE_OPTIONS})
        parameters.update(notifiable.notification_parameters(target_type, key) or {})

        group_owner = self.valid_group_owner(target, notifiable, key, group, group_expiry_delay)

        notification = self.model(
            target=target,
            notifiable=notifiable,
            key=key,
            group=group,
            notifier=notifier,
            parameters=parameters,
            group_owner=group_owner,
        )
        notification.full_clean(exclude=['group_owner'])
        notification.save()

        logger.info(
            f"Stored notification {notification.pk} ({key}) for {target_type} {target.pk}"
            + (f" as member of {group_owner.pk}" if group_owner else "")
        )
        notification_created.send(sender=self.model, notification=notification)
        return notification

    def valid_group_owner(self, target, notifiable, key, group, group_expiry_delay=None):
        """Earliest unopened group owner the new notification can join."""
        if group is None:
            return None
        group_owner_notifications = (
            self.filtered_by_target(target)
            .filtered_by_type(notifiable)
            .filtered_by_key(key)
            .filtered_by_group(group)
            .group_owners_only()
            .unopened_only()
        )
        if group_expiry_delay:
            group_owner_notifications = group_owner_notifications.within_expiration_only(group_expiry_delay)
        return group_owner_notifications.earliest_order().first()

    def _target_selection(self, queryset, options):
        ids = options.pop('ids', None)
        queryset = queryset.filtered_by_options(options)
        if ids:
            queryset = queryset.filter(id__in=ids)
        return queryset

    def open_all_of(self, target, **options):
        """
        Open every unopened notification of the target matching the filter
        options. Returns the opened notifications.
        """
        opened_at = options.pop('opened_at', None) or timezone.now()
        queryset = self._target_selection(self.filtered_by_target(target).unopened_only(), options)
        opened_notifications = list(queryset)
        if opened_notifications:
            self.filter(pk__in=[n.pk for n in opened_notifications]).update(opened_at=opened_at)
            for notification in opened_notifications:
                notification.opened_at = opened_at
        logger.info(f"Opened {len(opened_notifications)} notifications of {target}")
        return opened_notifications

    def destroy_all_of(self, target, **options):
        """Delete the target's notifications matching the filter options."""
        queryset = self._target_selection(self.filtered_by_target(target), options)
        destroyed_notifications = list(queryset)
        if destroyed_notifications:
            self.filter(pk__in=[n.pk for n in destroyed_notifications]).delete()
        logger.info(f"Destroyed {len(destroyed_notifications)} notifications of {target}")
        return destroyed_notifications

    def group_member_exists(self, notifications) -> bool:
        notifications = list(notifications)
        if not notifications:
            return False
        return self.group_members_of_owner_ids_only([n.pk for n in notifications]).exists()

    def send_batch_notification_email(self, target, notifications, batch_key=None, send_later=True):
        """
        Send one email covering several notifications of the target.

        Returns True when the email was sent or queued.
        """
        notifications = list(notifications)
        if not notifications:
            return False
        batch_key = batch_key or notifications[0].key
        if not (target.batch_notification_email_allowed(batch_key)
                and target.subscribes_to_notification_email(batch_key)):
            return False

        from . import mailer, tasks
        if send_later:
            tasks.send_batch_notification_email_task.delay(
                target._meta.label_lower, str(target.pk), [n.pk for n in notifications], batch_key
            )
        else:
            mailer.send_batch_notification_email(target, notifications, batch_key)
        return True


class SubscriptionQuerySet(models.QuerySet):
    """Chainable filters for subscriptions."""

    def filtered_by_target(self, target):
        return self.filter(**_instance_lookup('target', target))

    def filtered_by_key(self, key):
        return self.filter(key=key)

    def filtered_by_options(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        queryset = self
        if 'filtered_by_key' in options:
            queryset = queryset.filtered_by_key(options['filtered_by_key'])
        if 'custom_filter' in options:
            custom_filter = options['custom_filter']
            queryset = queryset.filter(custom_filter) if isinstance(custom_filter, Q) else queryset.filter(**custom_filter)
        return queryset

    def subscribing_only(self):
        return self.filter(subscribing=True)

    def with_target(self):
        return self.prefetch_related('target')

    def latest_order(self):
        return self.order_by('-created_at', '-id')

    def earliest_order(self):
        return self.order_by('created_at', 'id')

    def uniq_keys(self) -> List[str]:
        queryset = self if self.query.order_by or self.query.is_sliced else self.latest_order()
        return list(dict.fromkeys(queryset.values_list('key', flat=True)))


class SubscriptionManager(models.Manager.from_queryset(SubscriptionQuerySet)):
    pass
