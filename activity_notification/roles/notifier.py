"""
Notifier role: a model acting as the sender of notifications.

    class User(Notifier, models.Model):
        notifier_options = {'printable_name': 'name'}
"""
from .common import Common


class Notifier(Common):
    """Role of a model sending notifications."""

    notifier_options = {}

    @property
    def sent_notifications(self):
        from ..models import Notification
        return Notification.objects.filtered_by_notifier(self)

    def printable_notifier_name(self) -> str:
        return str(self._resolve_role_option(self.notifier_options, 'printable_name', str(self)))

    def printable_name(self) -> str:
        return self.printable_notifier_name()
