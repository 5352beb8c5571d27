"""
Celery tasks for background notification delivery.
"""
import logging

from celery import shared_task
from django.apps import apps
from django.db import models

from .exceptions import NotifiableNotFoundError

logger = logging.getLogger(__name__)

MODEL_REFERENCE = '__model__'


def serialize_options(options):
    """Replace model instances in notify options with references a task can load."""
    serialized = {}
    for name, value in options.items():
        if isinstance(value, models.Model):
            value = {MODEL_REFERENCE: value._meta.label_lower, 'pk': str(value.pk)}
        serialized[name] = value
    return serialized


def deserialize_options(options):
    deserialized = {}
    for name, value in (options or {}).items():
        if isinstance(value, dict) and MODEL_REFERENCE in value:
            value = load_instance(value[MODEL_REFERENCE], value['pk'])
        deserialized[name] = value
    return deserialized


def load_instance(label, pk):
    """Load a model instance by ``app_label.model`` label and primary key."""
    model = apps.get_model(label)
    try:
        return model._default_manager.get(pk=pk)
    except model.DoesNotExist:
        raise NotifiableNotFoundError(f"{label} {pk} not found")


@shared_task
def notify_task(target_type, notifiable_label, notifiable_pk, options=None):
    """Generate the notifications of a notifiable for a target type"""
    from .models import Notification

    try:
        notifiable = load_instance(notifiable_label, notifiable_pk)
    except NotifiableNotFoundError as e:
        logger.error(f"Failed to notify {target_type}: {e}")
        return []

    notifications = Notification.objects.notify(target_type, notifiable, **deserialize_options(options))
    logger.info(f"Generated {len(notifications)} notifications of {notifiable_label} {notifiable_pk} for {target_type}")
    return [notification.pk for notification in notifications]


@shared_task
def send_notification_email_task(notification_id, fallback=None):
    """Send the email of a stored notification"""
    from . import mailer
    from .models import Notification

    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        logger.error(f"Notification {notification_id} not found, email not sent")
        return 0

    try:
        return mailer.send_notification_email(notification, fallback=fallback)
    except Exception as e:
        logger.error(f"Failed to send notification email of {notification_id}: {str(e)}")
        raise


@shared_task
def send_batch_notification_email_task(target_label, target_pk, notification_ids, batch_key=None):
    """Send one email covering several notifications of a target"""
    from . import mailer
    from .models import Notification

    try:
        target = load_instance(target_label, target_pk)
    except NotifiableNotFoundError as e:
        logger.error(f"Failed to send batch notification email: {e}")
        return 0

    notifications = list(Notification.objects.filter(id__in=notification_ids).latest_order())
    try:
        return mailer.send_batch_notification_email(target, notifications, batch_key)
    except Exception as e:
        logger.error(f"Failed to send batch notification email to {target_label} {target_pk}: {str(e)}")
        raise
