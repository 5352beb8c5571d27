"""
Activity Notification WebSocket Routing
"""

from django.urls import re_path

from .consumers import NotificationConsumer

websocket_urlpatterns = [
    re_path(
        r'ws/activity_notification/(?P<target_type>[\w.]+)/(?P<target_id>[^/]+)/$',
        NotificationConsumer.as_asgi()
    ),
]
