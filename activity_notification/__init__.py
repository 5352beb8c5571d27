"""
Activity notifications for Django.

Polymorphic, groupable notifications with subscriptions, email delivery,
real-time broadcast and a REST API.
"""

__version__ = '1.0.0'
