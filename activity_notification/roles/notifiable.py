"""
Notifiable role: a model whose events generate notifications.

Options are keyed by the target type (the resource name of the target model,
``users`` for ``User``):

    class Comment(Notifiable, models.Model):
        notifiable_options = {
            'users': {
                'targets': lambda comment, key: comment.article.commented_users(),
                'group': 'article',
                'notifier': 'user',
                'email_allowed': True,
                'notifiable_path': 'article_path',
            },
        }

Models can also override the ``notification_*`` methods instead of configuring
the corresponding option.
"""
import logging
from typing import Any, Dict, List, Optional

from django.db import transaction

from ..conf import settings
from ..exceptions import ConfigError, DeleteRestrictionError
from ..utils import resource_name, type_name
from .common import Common

logger = logging.getLogger(__name__)


class Notifiable(Common):
    """Role of a model generating notifications."""

    notifiable_options = {}

    def _notifiable_option(self, target_type, name, default=None, *args):
        options = self.notifiable_options.get(target_type) or {}
        return self._resolve_role_option(options, name, default, *args)

    def notifiable_target_types(self) -> List[str]:
        return list(self.notifiable_options.keys())

    # Configured values

    def notification_targets(self, target_type, options: Optional[Dict[str, Any]] = None):
        """
        Targets to notify for ``target_type``.

        Raises ConfigError when no targets are configured for the type.
        """
        options = options or {}
        key = options.get('key') or self.default_notification_key()
        if target_type not in self.notifiable_options or 'targets' not in self.notifiable_options[target_type]:
            raise ConfigError(
                f"You have to configure 'targets' for {target_type} in "
                f"{self.__class__.__name__}.notifiable_options"
            )
        return self._notifiable_option(target_type, 'targets', None, key)

    def notification_group(self, target_type, key):
        return self._notifiable_option(target_type, 'group', None, key)

    def notification_group_expiry_delay(self, target_type, key):
        return self._notifiable_option(target_type, 'group_expiry_delay', None, key)

    def notification_parameters(self, target_type, key) -> dict:
        return self._notifiable_option(target_type, 'parameters', {}, key) or {}

    def notifier_for(self, target_type, key):
        return self._notifiable_option(target_type, 'notifier', None, key)

    def notification_email_allowed(self, target, key) -> bool:
        return bool(self._notifiable_option(
            resource_name(target), 'email_allowed', settings.EMAIL_ENABLED, target, key
        ))

    def notifiable_path(self, target_type, key=None) -> Optional[str]:
        """
        Path to the notifiable, used by ``move``.

        Falls back to ``get_absolute_url`` of the model.
        """
        options = self.notifiable_options.get(target_type) or {}
        if 'notifiable_path' in options:
            return self._notifiable_option(target_type, 'notifiable_path', None, key)
        if hasattr(self, 'get_absolute_url'):
            return self.get_absolute_url()
        return None

    def printable_notifiable_name(self, target, key=None) -> str:
        default = f"{self.printable_type().lower()} ({self.pk})"
        return str(self._notifiable_option(resource_name(target), 'printable_name', default, target, key))

    def notification_email_subject(self, target, key) -> Optional[str]:
        """Subject override for notification emails, None for the default."""
        return None

    def default_notification_key(self) -> str:
        return f"{self._meta.model_name}.default"

    def notification_key_for_tracked_creation(self) -> str:
        return f"{self._meta.model_name}.create"

    def notification_key_for_tracked_update(self) -> str:
        return f"{self._meta.model_name}.update"

    def tracked_notification_keys(self, target_type) -> Dict[str, str]:
        """
        Keys notified on save for a ``tracked`` target type.

        ``tracked`` is True for both creation and update, or a dict with
        ``only`` / ``except`` lists of ``'create'`` / ``'update'`` and optional
        ``key`` overrides, e.g. ``{'only': ['create'], 'key': 'post.published'}``.
        """
        tracked = (self.notifiable_options.get(target_type) or {}).get('tracked')
        if not tracked:
            return {}
        events = ['create', 'update']
        if isinstance(tracked, dict):
            if 'only' in tracked:
                events = [event for event in events if event in tracked['only']]
            if 'except' in tracked:
                events = [event for event in events if event not in tracked['except']]
        keys = {
            'create': self.notification_key_for_tracked_creation(),
            'update': self.notification_key_for_tracked_update(),
        }
        if isinstance(tracked, dict) and tracked.get('key'):
            keys = {event: tracked['key'] for event in keys}
        return {event: keys[event] for event in events}

    # Notification operations

    def notify(self, target_type, **options):
        from ..models import Notification
        return Notification.objects.notify(target_type, self, **options)

    def notify_later(self, target_type, **options):
        """Generate the notifications in a Celery task once the transaction commits."""
        from .. import tasks

        options.pop('notify_later', None)
        label, pk = self._meta.label_lower, str(self.pk)
        serialized = tasks.serialize_options(options)
        transaction.on_commit(
            lambda: tasks.notify_task.apply_async(
                args=[target_type, label, pk, serialized],
                queue=settings.CELERY_QUEUE,
            )
        )
        logger.debug(f"Queued notifications of {label} {pk} for {target_type}")

    def notify_now(self, target_type, **options):
        options['send_later'] = False
        return self.notify(target_type, **options)

    def notify_to(self, target, **options):
        from ..models import Notification
        return Notification.objects.notify_to(target, self, **options)

    def notify_all(self, targets, **options):
        from ..models import Notification
        return Notification.objects.notify_all(targets, self, **options)

    def generated_notifications_as_notifiable(self):
        from ..models import Notification
        return Notification.objects.filtered_by_instance(self)

    def generated_notifications_as_notifiable_for(self, target_type=None):
        """Notifications generated by this notifiable, optionally for one target type."""
        notifications = self.generated_notifications_as_notifiable()
        if target_type is None:
            return notifications
        from .target import target_model_for
        target_model = target_model_for(target_type)
        if target_model is None:
            return notifications.none()
        return notifications.filtered_by_target_type(target_model)

    def destroy_generated_notifications_with_dependency(self, dependent='delete_all', target_type=None,
                                                        remove_from_group=False):
        """
        Delete the notifications generated by this notifiable.

        With ``remove_from_group`` the groups owned by deleted notifications
        are handed over to their earliest member first.
        """
        generated_notifications = self.generated_notifications_as_notifiable_for(target_type)
        if dependent == 'restrict_with_exception':
            if generated_notifications.exists():
                raise DeleteRestrictionError(
                    f"Cannot delete {self.printable_type()} {self.pk} because dependent "
                    f"notifications for {target_type} exist"
                )
            return 0
        if remove_from_group:
            for notification in generated_notifications.group_owners_only():
                notification.remove_from_group()
        deleted, _ = generated_notifications.delete()
        logger.info(f"Deleted {deleted} notifications generated by {type_name(self)} {self.pk} for {target_type}")
        return deleted

    def check_generated_notifications_restriction(self):
        """Raise DeleteRestrictionError for a restricted target type with generated notifications."""
        for target_type, options in self.notifiable_options.items():
            if options.get('dependent_notifications') == 'restrict_with_exception':
                self.destroy_generated_notifications_with_dependency('restrict_with_exception', target_type)

    def destroy_generated_notifications_with_dependencies(self):
        """Apply the ``dependent_notifications`` option of each target type."""
        for target_type, options in self.notifiable_options.items():
            dependent = options.get('dependent_notifications')
            if dependent in (None, 'restrict_with_exception'):
                continue
            remove_from_group = dependent in ('update_group_and_delete_all', 'update_group_and_destroy')
            self.destroy_generated_notifications_with_dependency(dependent, target_type, remove_from_group)

    def delete(self, *args, **kwargs):
        self.check_generated_notifications_restriction()
        return super().delete(*args, **kwargs)
