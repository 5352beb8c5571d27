"""
Real-time delivery of notifications through the channels layer.

Every target has its own channel group, joined by
``consumers.NotificationConsumer``:

    activity_notification_testapp_user_1
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .conf import settings

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT = 'notification.new'


def target_group_name(target) -> str:
    """Channel group of a target, ``<prefix>_<app_label>_<model>_<pk>``."""
    meta = target._meta
    return f"{settings.BROADCAST_CHANNEL_PREFIX}_{meta.app_label}_{meta.model_name}_{target.pk}"


def broadcast_notification(notification) -> bool:
    """
    Send a ``notification.new`` event with the serialized notification to the
    target's channel group.

    Returns False when no channel layer is configured.
    """
    from .serializers import NotificationSerializer

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured, notification not broadcast")
        return False

    group_name = target_group_name(notification.target)
    async_to_sync(channel_layer.group_send)(
        group_name,
        {
            'type': NEW_NOTIFICATION_EVENT,
            'notification': dict(NotificationSerializer(notification).data),
        }
    )
    logger.debug(f"Broadcast notification {notification.pk} to {group_name}")
    return True
