"""
Activity Notification App Configuration
"""

from django.apps import AppConfig


class ActivityNotificationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'activity_notification'
    verbose_name = 'Activity Notification'

    def ready(self):
        """Connect the role signal receivers"""
        from . import signals  # noqa
