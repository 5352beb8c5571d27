"""
Activity Notification Signals

Custom signals sent by notifications, and receivers applying the role
options of target and notifiable models on save and delete.
"""
import logging

from django.db.models.signals import post_save, pre_delete
from django.dispatch import Signal, receiver

from .conf import settings
from .roles import Notifiable, Target

logger = logging.getLogger(__name__)

# Custom signals
notification_created = Signal()  # Sent with notification when stored
notification_opened = Signal()  # Sent with notification and count when opened


@receiver(pre_delete)
def destroy_dependent_notifications(sender, instance, **kwargs):
    """
    Apply ``dependent_notifications`` of targets and notifiables before deletion.

    ``restrict_with_exception`` is checked by the role ``delete()`` methods
    before Django starts deleting. It is checked again here for records
    deleted by a cascade or a queryset delete, which roll back on the error.
    """
    if isinstance(instance, Target):
        instance.check_target_notifications_restriction()
    if isinstance(instance, Notifiable):
        instance.check_generated_notifications_restriction()
    if isinstance(instance, Target):
        instance.destroy_target_notifications_with_dependency()
    if isinstance(instance, Notifiable):
        instance.destroy_generated_notifications_with_dependencies()


@receiver(post_save)
def notify_tracked_changes(sender, instance, created, raw=False, **kwargs):
    """Notify the target types configured with ``tracked`` when a notifiable is saved."""
    if raw or not isinstance(instance, Notifiable) or not settings.ENABLED:
        return

    event = 'create' if created else 'update'
    for target_type, options in instance.notifiable_options.items():
        key = instance.tracked_notification_keys(target_type).get(event)
        if key is None:
            continue
        tracked = options.get('tracked')
        notify_options = {'key': key}
        if isinstance(tracked, dict) and tracked.get('notify_later'):
            notify_options['notify_later'] = True
        logger.debug(f"Tracked {event} of {instance._meta.label_lower} {instance.pk} for {target_type}")
        instance.notify(target_type, **notify_options)
