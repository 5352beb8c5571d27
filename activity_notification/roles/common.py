"""
Behaviour shared by every notification role.
"""
from ..utils import object_id_of, printable_type, resolve_value, type_name


class Common:
    """Base class of the notification roles."""

    def printable_type(self) -> str:
        """Human readable type of the record, e.g. ``Comment``."""
        return printable_type(self)

    def printable_name(self) -> str:
        return str(self)

    def as_notification_json(self, printable_name=None) -> dict:
        return {
            'id': object_id_of(self),
            'type': type_name(self),
            'printable_type': self.printable_type(),
            'printable_name': printable_name if printable_name is not None else self.printable_name(),
        }

    def _resolve_role_option(self, options, name, default=None, *args):
        if name not in options:
            return default
        return resolve_value(self, options[name], *args)
