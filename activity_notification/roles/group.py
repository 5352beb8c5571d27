"""
Group role: a model bundling notifications, e.g. the article of commented
notifications.
"""
from .common import Common


class Group(Common):
    """Role of a model grouping notifications."""

    group_options = {}

    def printable_group_name(self) -> str:
        return str(self._resolve_role_option(self.group_options, 'printable_name', str(self)))

    def printable_name(self) -> str:
        return self.printable_group_name()
