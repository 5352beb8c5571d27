"""
Configuration for activity notifications.

Options are read from the ``ACTIVITY_NOTIFICATION`` Django setting. Anything
not set there falls back to a default, which can itself be overridden from
the environment:

    ACTIVITY_NOTIFICATION = {
        'EMAIL_ENABLED': True,
        'MAILER_SENDER': 'notifications@example.com',
        'OPENED_INDEX_LIMIT': 20,
    }
"""
from decouple import config
from django.conf import settings as django_settings
from django.core.signals import setting_changed
from django.dispatch import receiver

SETTING_NAME = 'ACTIVITY_NOTIFICATION'

DEFAULTS = {
    'ENABLED': config('ACTIVITY_NOTIFICATION_ENABLED', default=True, cast=bool),
    'NOTIFICATION_TABLE_NAME': config('ACTIVITY_NOTIFICATION_TABLE_NAME', default='notifications'),
    'SUBSCRIPTION_TABLE_NAME': config('ACTIVITY_NOTIFICATION_SUBSCRIPTION_TABLE_NAME', default='subscriptions'),
    'EMAIL_ENABLED': config('ACTIVITY_NOTIFICATION_EMAIL_ENABLED', default=False, cast=bool),
    'SUBSCRIPTION_ENABLED': config('ACTIVITY_NOTIFICATION_SUBSCRIPTION_ENABLED', default=False, cast=bool),
    'SUBSCRIBE_AS_DEFAULT': config('ACTIVITY_NOTIFICATION_SUBSCRIBE_AS_DEFAULT', default=True, cast=bool),
    'SUBSCRIBE_TO_EMAIL_AS_DEFAULT': config(
        'ACTIVITY_NOTIFICATION_SUBSCRIBE_TO_EMAIL_AS_DEFAULT', default=True, cast=bool
    ),
    'MAILER_SENDER': config('ACTIVITY_NOTIFICATION_MAILER_SENDER', default=None),
    'OPENED_INDEX_LIMIT': config('ACTIVITY_NOTIFICATION_OPENED_INDEX_LIMIT', default=10, cast=int),
    'DATABASE': config('ACTIVITY_NOTIFICATION_DATABASE', default=None),
    'BROADCAST_ENABLED': config('ACTIVITY_NOTIFICATION_BROADCAST_ENABLED', default=False, cast=bool),
    'BROADCAST_CHANNEL_PREFIX': config(
        'ACTIVITY_NOTIFICATION_BROADCAST_CHANNEL_PREFIX', default='activity_notification'
    ),
    'AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'CELERY_QUEUE': config('ACTIVITY_NOTIFICATION_CELERY_QUEUE', default='activity_notification'),
}


class ActivityNotificationSettings:
    """
    Lazy accessor for the activity notification options.

    Values are cached on first access and the cache is cleared whenever the
    ``ACTIVITY_NOTIFICATION`` setting changes.
    """

    def __init__(self, defaults=None):
        self.defaults = defaults or DEFAULTS
        self._cached = set()

    @property
    def user_settings(self):
        if not hasattr(self, '_user_settings'):
            self._user_settings = getattr(django_settings, SETTING_NAME, {}) or {}
        return self._user_settings

    def __getattr__(self, attr):
        if attr not in self.defaults:
            raise AttributeError(f"Invalid activity notification setting: '{attr}'")

        value = self.user_settings.get(attr, self.defaults[attr])

        self._cached.add(attr)
        setattr(self, attr, value)
        return value

    def reload(self):
        for attr in self._cached:
            delattr(self, attr)
        self._cached.clear()
        if hasattr(self, '_user_settings'):
            delattr(self, '_user_settings')


settings = ActivityNotificationSettings(DEFAULTS)


@receiver(setting_changed)
def reload_settings(*args, **kwargs):
    if kwargs['setting'] == SETTING_NAME:
        settings.reload()
