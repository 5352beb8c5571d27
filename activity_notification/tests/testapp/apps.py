from django.apps import AppConfig


class TestAppConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'activity_notification.tests.testapp'
    label = 'testapp'
    verbose_name = 'Activity Notification Test App'
