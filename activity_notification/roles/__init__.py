"""
Mixins making models take part in notifications.
"""
from .common import Common
from .group import Group
from .notifiable import Notifiable
from .notifier import Notifier
from .target import Target, target_model_for, target_models

__all__ = [
    'Common',
    'Group',
    'Notifiable',
    'Notifier',
    'Target',
    'target_model_for',
    'target_models',
]
