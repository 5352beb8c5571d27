"""
Target role: a model that receives notifications.

    class User(Target, models.Model):
        target_options = {
            'email': 'email',
            'email_allowed': True,
            'printable_name': 'name',
        }

Options:

- ``email``: address used for notification emails.
- ``email_allowed``: whether notification emails are sent, called with
  ``(notifiable, key)`` when callable. Defaults to ``EMAIL_ENABLED``.
- ``batch_email_allowed``: same for batch emails, called with ``key``.
- ``subscription_allowed``: whether subscriptions are honoured, called with
  ``key``. Defaults to ``SUBSCRIPTION_ENABLED``.
- ``broadcast_allowed``: whether notifications are pushed to the target's
  channel group, called with ``(notifiable, key)``.
- ``printable_name``: display name of the target.
- ``devise_resource``: the authenticated user record standing for this
  target, as an attribute name or callable. Defaults to the target itself.
- ``dependent_notifications``: what happens to notifications when the
  target is deleted: ``delete_all`` (default), ``restrict_with_exception``,
  ``update_group_and_delete_all`` or None.
"""
import logging
from typing import List, Optional

from django.apps import apps

from ..conf import settings
from ..exceptions import DeleteRestrictionError
from ..utils import resolve_value, resource_name
from .common import Common

logger = logging.getLogger(__name__)


def target_models() -> List[type]:
    return [model for model in apps.get_models() if issubclass(model, Target)]


def target_model_for(name: str) -> Optional[type]:
    """Find the target model for a resource name or an ``app_label.model`` name."""
    if not name:
        return None
    for model in target_models():
        if name in (resource_name(model), model._meta.label_lower):
            return model
    return None


class Target(Common):
    """Role of a model receiving notifications."""

    target_options = {}

    @classmethod
    def target_for_user(cls, user):
        """
        Resolve the target standing for an authenticated user, if any.

        An attribute name ``devise_resource`` is looked up in one query. A
        callable one is checked against each target with ``authenticated_with``.
        """
        if user is None or not getattr(user, 'is_authenticated', False):
            return None
        if isinstance(user, cls):
            return user
        resource = cls.target_options.get('devise_resource')
        if isinstance(resource, str):
            return cls._default_manager.filter(**{resource: user}).first()
        if callable(resource):
            for target in cls._default_manager.all():
                if target.authenticated_with(user):
                    return target
        return None

    def _target_option(self, name, default=None, *args):
        return self._resolve_role_option(self.target_options, name, default, *args)

    @property
    def notifications(self):
        from ..models import Notification
        return Notification.objects.filtered_by_target(self)

    @property
    def subscriptions(self):
        from ..models import Subscription
        return Subscription.objects.filtered_by_target(self)

    def mailer_to(self) -> Optional[str]:
        return self._target_option('email')

    def notification_email_allowed(self, notifiable, key) -> bool:
        return bool(self._target_option('email_allowed', settings.EMAIL_ENABLED, notifiable, key))

    def batch_notification_email_allowed(self, key) -> bool:
        return bool(self._target_option('batch_email_allowed', settings.EMAIL_ENABLED, key))

    def subscription_allowed(self, key=None) -> bool:
        return bool(self._target_option('subscription_allowed', settings.SUBSCRIPTION_ENABLED, key))

    def broadcast_allowed(self, notifiable, key) -> bool:
        return bool(self._target_option('broadcast_allowed', settings.BROADCAST_ENABLED, notifiable, key))

    def printable_target_name(self) -> str:
        return str(self._target_option('printable_name', str(self)))

    def printable_name(self) -> str:
        return self.printable_target_name()

    def authenticated_with(self, user) -> bool:
        """
        Check that ``user`` is the authenticated record standing for this
        target.

        Raises TypeError when ``user`` is of a different type than the
        configured resource.
        """
        if user is None or not getattr(user, 'is_authenticated', True):
            return False
        resource_option = self.target_options.get('devise_resource')
        resource = resolve_value(self, resource_option) if resource_option else self
        if resource is None:
            return False
        if not isinstance(user, resource.__class__):
            raise TypeError(
                f"Different type of current resource {user.__class__.__name__} "
                f"with devise resource {resource.__class__.__name__} has been passed to "
                f"{self.__class__.__name__}.authenticated_with"
            )
        return resource.pk == user.pk

    # Notification indexes

    def _unopened_notification_index(self, with_attributes=False, **options):
        reverse = options.get('reverse') or False
        with_group_members = options.get('with_group_members') or False
        target_index = self.notifications.filtered_by_options(options)
        if with_attributes:
            target_index = target_index.with_attributes()
        target_index = target_index.unopened_index(reverse, with_group_members)
        limit = options.get('limit')
        return target_index[:limit] if limit is not None else target_index

    def _opened_notification_index(self, with_attributes=False, **options):
        limit = options.get('limit')
        if limit is None:
            limit = settings.OPENED_INDEX_LIMIT
        reverse = options.get('reverse') or False
        with_group_members = options.get('with_group_members') or False
        target_index = self.notifications.filtered_by_options(options)
        if with_attributes:
            target_index = target_index.with_attributes()
        return target_index.opened_index(limit, reverse, with_group_members)

    def _arrange_notification_index(self, with_attributes, options) -> list:
        if not self.has_unopened_notifications(**options):
            return list(self._opened_notification_index(with_attributes, **options))

        unopened_index = list(self._unopened_notification_index(with_attributes, **options))
        limit = options.get('limit')
        if limit is None:
            opened_index = list(self._opened_notification_index(with_attributes, **options))
        elif limit > len(unopened_index):
            opened_options = dict(options, limit=limit - len(unopened_index))
            opened_index = list(self._opened_notification_index(with_attributes, **opened_options))
        else:
            opened_index = []
        return unopened_index + opened_index

    def unopened_notification_count(self, **options) -> int:
        return self._unopened_notification_index(**options).count()

    def has_unopened_notifications(self, **options) -> bool:
        return self._unopened_notification_index(**options).exists()

    def notification_index(self, **options) -> list:
        """
        Unopened group owners followed by opened ones.

        Accepts ``limit``, ``reverse``, ``with_group_members`` and the
        ``filtered_by_*`` options of ``NotificationQuerySet.filtered_by_options``.
        """
        return self._arrange_notification_index(False, options)

    def unopened_notification_index(self, **options):
        return self._unopened_notification_index(**options)

    def opened_notification_index(self, **options):
        return self._opened_notification_index(**options)

    def notification_index_with_attributes(self, **options) -> list:
        return self._arrange_notification_index(True, options)

    def unopened_notification_index_with_attributes(self, **options):
        return self._unopened_notification_index(with_attributes=True, **options)

    def opened_notification_index_with_attributes(self, **options):
        return self._opened_notification_index(with_attributes=True, **options)

    # Notification operations

    def receive_notification_of(self, notifiable, **options):
        from ..models import Notification
        return Notification.objects.notify_to(self, notifiable, **options)

    def receive_notification_now_of(self, notifiable, **options):
        options['send_later'] = False
        return self.receive_notification_of(notifiable, **options)

    def open_all_notifications(self, **options):
        from ..models import Notification
        return Notification.objects.open_all_of(self, **options)

    def destroy_all_notifications(self, **options):
        from ..models import Notification
        return Notification.objects.destroy_all_of(self, **options)

    def send_batch_notification_email(self, notifications, batch_key=None, send_later=True) -> bool:
        from ..models import Notification
        return Notification.objects.send_batch_notification_email(
            self, notifications, batch_key=batch_key, send_later=send_later
        )

    def check_target_notifications_restriction(self):
        """Raise DeleteRestrictionError when ``restrict_with_exception`` blocks deletion."""
        dependent = self.target_options.get('dependent_notifications', 'delete_all')
        if dependent == 'restrict_with_exception' and self.notifications.exists():
            raise DeleteRestrictionError(
                f"Cannot delete {self.printable_type()} {self.pk} because dependent notifications exist"
            )

    def destroy_target_notifications_with_dependency(self):
        """Apply ``dependent_notifications`` before the target is deleted."""
        dependent = self.target_options.get('dependent_notifications', 'delete_all')
        if dependent in (None, 'restrict_with_exception'):
            return
        if dependent in ('update_group_and_delete_all', 'update_group_and_destroy'):
            for notification in self.notifications.group_owners_only():
                notification.remove_from_group()
        deleted, _ = self.notifications.delete()
        logger.info(f"Deleted {deleted} notifications of {self.printable_type()} {self.pk}")

    def delete(self, *args, **kwargs):
        self.check_target_notifications_restriction()
        return super().delete(*args, **kwargs)

    # Subscriptions

    def find_subscription(self, key):
        return self.subscriptions.filter(key=key).first()

    def create_subscription(self, **subscription_params):
        """
        Create and validate a subscription of this target.

        Raises ValidationError for invalid parameters or a duplicate key.
        """
        from ..models import Subscription

        if subscription_params.get('subscribing') is False and 'subscribing_to_email' not in subscription_params:
            subscription_params['subscribing_to_email'] = False
        subscription = Subscription(target=self, **subscription_params)
        subscription.full_clean()
        subscription.save()
        logger.info(f"Created subscription {subscription.pk} ({subscription.key}) of {self.printable_type()} {self.pk}")
        return subscription

    def find_or_create_subscription(self, key, **subscription_params):
        subscription = self.find_subscription(key)
        if subscription is not None:
            return subscription
        return self.create_subscription(key=key, **subscription_params)

    def subscription_index(self, **options):
        target_index = self.subscriptions.filtered_by_options(options)
        target_index = target_index.earliest_order() if options.get('reverse') else target_index.latest_order()
        if options.get('with_target'):
            target_index = target_index.with_target()
        limit = options.get('limit')
        return target_index[:limit] if limit is not None else target_index

    def notification_keys(self, **options) -> List[str]:
        """
        Keys of the notifications of this target.

        ``filter='configured'`` keeps the keys with a subscription,
        ``filter='unconfigured'`` the keys without one.
        """
        subscription_keys = self.subscriptions.uniq_keys()
        key_options = {k: v for k, v in options.items() if k in ('filtered_by_key', 'custom_filter')}
        target_notifications = self.notifications.filtered_by_options(key_options)
        if options.get('reverse'):
            target_notifications = target_notifications.earliest_order()
        else:
            target_notifications = target_notifications.latest_order()
        limit = options.get('limit')
        if limit is not None:
            target_notifications = target_notifications[:limit + len(subscription_keys)]
        notification_keys = target_notifications.uniq_keys()

        key_filter = options.get('filter')
        if key_filter == 'configured':
            notification_keys = [key for key in notification_keys if key in subscription_keys]
        elif key_filter == 'unconfigured':
            notification_keys = [key for key in notification_keys if key not in subscription_keys]
        return notification_keys[:limit] if limit is not None else notification_keys

    def subscribes_to_notification(self, key, subscribe_as_default=None) -> bool:
        if subscribe_as_default is None:
            subscribe_as_default = settings.SUBSCRIBE_AS_DEFAULT
        if not self.subscription_allowed(key):
            return True
        subscription = self.find_subscription(key)
        return subscription.subscribing if subscription is not None else subscribe_as_default

    def subscribes_to_notification_email(self, key, subscribe_as_default=None) -> bool:
        if subscribe_as_default is None:
            subscribe_as_default = settings.SUBSCRIBE_AS_DEFAULT and settings.SUBSCRIBE_TO_EMAIL_AS_DEFAULT
        if not self.subscription_allowed(key):
            return True
        subscription = self.find_subscription(key)
        return subscription.subscribing_to_email if subscription is not None else subscribe_as_default
