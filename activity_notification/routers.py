"""
Database router for activity notification models.

Routes notifications and subscriptions to the database alias configured as
``ACTIVITY_NOTIFICATION['DATABASE']``:

    DATABASE_ROUTERS = ['activity_notification.routers.ActivityNotificationRouter']
"""

import logging
from typing import Optional, Type

from django.db import models

from .conf import settings

logger = logging.getLogger(__name__)

APP_LABEL = 'activity_notification'


class ActivityNotificationRouter:
    """
    Send reads, writes and migrations of the app's models to the configured
    database. Other models are left to the next router.
    """

    def _database(self) -> Optional[str]:
        return settings.DATABASE or None

    def _is_routed(self, model: Type[models.Model]) -> bool:
        return model._meta.app_label == APP_LABEL

    def db_for_read(self, model, **hints) -> Optional[str]:
        if self._is_routed(model):
            return self._database()
        return None

    def db_for_write(self, model, **hints) -> Optional[str]:
        if self._is_routed(model):
            return self._database()
        return None

    def allow_relation(self, obj1, obj2, **hints) -> Optional[bool]:
        if self._is_routed(obj1.__class__) and self._is_routed(obj2.__class__):
            return True
        return None

    def allow_migrate(self, db, app_label, model_name=None, **hints) -> Optional[bool]:
        if app_label != APP_LABEL:
            return None
        database = self._database()
        if database is None:
            return None
        allowed = db == database
        if not allowed:
            logger.debug(f"Skipping {app_label} migrations on {db}")
        return allowed
