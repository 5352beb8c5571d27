"""
WebSocket consumer streaming notifications to their target.
"""
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .broadcast import target_group_name
from .roles import target_model_for
from .utils import find_by_pk

logger = logging.getLogger(__name__)

# Close codes
CLOSE_NOT_FOUND = 4004
CLOSE_FORBIDDEN = 4003


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """
    Consumer for real-time notifications of one target.

    Connects on ``ws/activity_notification/<target_type>/<target_id>/`` when
    the authenticated user stands for the target. Accepts
    ``{"type": "notification.open", "notification_id": ...}`` and
    ``{"type": "notification.open_all"}`` messages.
    """

    target = None
    group_name = None

    async def connect(self):
        """Join the target's channel group."""
        kwargs = self.scope['url_route']['kwargs']
        self.target = await self.load_target(kwargs['target_type'], kwargs['target_id'])
        if self.target is None:
            await self.close(code=CLOSE_NOT_FOUND)
            return

        if not await self.is_authenticated_target():
            logger.warning(f"Rejected notification stream of {kwargs['target_type']} {kwargs['target_id']}")
            await self.close(code=CLOSE_FORBIDDEN)
            return

        self.group_name = target_group_name(self.target)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.debug(f"Joined {self.group_name}")

    async def disconnect(self, close_code):
        """Leave the target's channel group."""
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        message_type = content.get('type')
        if message_type == 'notification.open':
            count = await self.open_notification(content.get('notification_id'))
            await self.send_json({
                'type': 'notification.opened',
                'notification_id': content.get('notification_id'),
                'count': count
            })
        elif message_type == 'notification.open_all':
            count = await self.open_all_notifications()
            await self.send_json({
                'type': 'notification.opened_all',
                'count': count
            })
        else:
            await self.send_json({
                'type': 'error',
                'message': f"Unknown message type: {message_type}"
            })

    @database_sync_to_async
    def load_target(self, target_type, target_id):
        target_model = target_model_for(target_type)
        if target_model is None:
            return None
        return find_by_pk(target_model._default_manager.all(), target_id)

    @database_sync_to_async
    def is_authenticated_target(self):
        try:
            return self.target.authenticated_with(self.scope.get('user'))
        except TypeError:
            return False

    @database_sync_to_async
    def open_notification(self, notification_id):
        notification = find_by_pk(self.target.notifications, notification_id)
        if notification is None:
            return 0
        return notification.open()

    @database_sync_to_async
    def open_all_notifications(self):
        return len(self.target.open_all_notifications())

    # Channel layer handlers
    async def notification_new(self, event):
        """Relay a new notification."""
        await self.send_json(event)
