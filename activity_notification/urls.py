"""
URL helpers mounting the notification API for a target model.

    from activity_notification.urls import notify_to, subscribed_by

    urlpatterns = [
        path('api/', include(
            notify_to('users', User) + subscribed_by('users', User)
        )),
    ]

gives ``api/users/<target_id>/notifications/...`` and
``api/users/<target_id>/subscriptions/...``. With ``current_target`` the
target is the request user and the routes are ``notifications/...`` and
``subscriptions/...``.
"""
from rest_framework.routers import SimpleRouter

from .views import (
    NotificationsAPIViewSet, NotificationsWithAuthAPIViewSet,
    SubscriptionsAPIViewSet, SubscriptionsWithAuthAPIViewSet
)

TARGET_ID_PATTERN = r'(?P<target_id>[^/.]+)'


def _bind_viewset(base, target_model, current_target):
    name = f"{target_model.__name__}{base.__name__}"
    return type(name, (base,), {
        'target_model': target_model,
        'current_target': current_target,
    })


def _prefix(resource_name, collection, current_target):
    if current_target:
        return collection
    return f"{resource_name}/{TARGET_ID_PATTERN}/{collection}"


def _routes(resource_name, target_model, collection, base, with_auth_base, with_auth, current_target):
    with_auth = with_auth or current_target
    viewset = _bind_viewset(with_auth_base if with_auth else base, target_model, current_target)
    basename = f"{resource_name}-{collection}" + ('-current' if current_target else '')
    router = SimpleRouter()
    router.register(_prefix(resource_name, collection, current_target), viewset, basename=basename)
    return router.urls


def notify_to(resource_name, target_model, with_auth=False, current_target=False):
    """
    URL patterns of the notification API of ``target_model``.

    ``with_auth`` requires the request user to stand for the target.
    ``current_target`` resolves the target from the request user and
    implies ``with_auth``. URL names are ``<resource_name>-notifications-<action>``.
    """
    return _routes(
        resource_name, target_model, 'notifications',
        NotificationsAPIViewSet, NotificationsWithAuthAPIViewSet, with_auth, current_target
    )


def subscribed_by(resource_name, target_model, with_auth=False, current_target=False):
    """URL patterns of the subscription API of ``target_model``."""
    return _routes(
        resource_name, target_model, 'subscriptions',
        SubscriptionsAPIViewSet, SubscriptionsWithAuthAPIViewSet, with_auth, current_target
    )
