"""
API views for notifications and subscriptions of a target.

The viewsets are bound to a target model by ``urls.notify_to`` and
``urls.subscribed_by``, which build subclasses setting ``target_model``.
"""
import logging

from django.http import Http404
from django.utils.module_loading import import_string
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from .conf import settings
from .exceptions import InvalidParameterError, api_exception_handler
from .models import Notification, Subscription
from .serializers import (
    NotificationIndexOptionsSerializer, NotificationSerializer, SubscriptionCreateSerializer,
    SubscriptionIndexOptionsSerializer, SubscriptionSerializer
)
from .utils import content_type_for, find_by_pk, to_boolean

logger = logging.getLogger(__name__)


class IsAuthenticatedTarget(permissions.BasePermission):
    """
    Allows access only when the request user stands for the requested target.
    """
    message = 'Unauthorized target'

    def has_permission(self, request, view):
        target = view.get_target()
        try:
            return bool(target.authenticated_with(request.user))
        except TypeError:
            logger.warning(f"{request.user.__class__.__name__} cannot authenticate as {target.printable_type()}")
            return False


class TargetViewSet(viewsets.GenericViewSet):
    """
    Base ViewSet resolving the target of the request.

    The target comes from the ``target_id`` URL parameter, or from the
    request user when ``current_target`` is set.
    """
    target_model = None
    current_target = False
    record_model = None
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get_exception_handler(self):
        return api_exception_handler

    def get_target(self):
        if not hasattr(self, '_target'):
            if self.current_target:
                target = self.target_model.target_for_user(self.request.user)
                if target is None:
                    raise PermissionDenied('Unauthorized target')
            else:
                target = find_by_pk(self.target_model._default_manager.all(), self.kwargs.get('target_id'))
                if target is None:
                    raise NotFound(f"Couldn't find {self.target_model.__name__}")
            self._target = target
        return self._target

    @property
    def target(self):
        return self.get_target()

    def get_object(self):
        """
        Load the record of the URL, which must belong to the target.

        Raises 404 for a missing record and 403 for a record of another target.
        """
        record = find_by_pk(self.record_model._default_manager.all(), self.kwargs.get('pk'))
        if record is None:
            raise Http404(f"Couldn't find {self.record_model.__name__}")
        target = self.get_target()
        if (record.target_content_type_id != content_type_for(target).pk
                or record.target_object_id != str(target.pk)):
            raise PermissionDenied('Wrong target is specified')
        return record

    def _options(self, serializer_class, data):
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            raise InvalidParameterError(
                '; '.join(f"{field}: {' '.join(str(m) for m in messages)}"
                          for field, messages in serializer.errors.items())
            )
        return serializer.to_options()


class NotificationsAPIViewSet(TargetViewSet):
    """ViewSet for notifications of a target"""
    record_model = Notification
    serializer_class = NotificationSerializer

    def get_queryset(self):
        return self.get_target().notifications.with_attributes()

    def _render_notifications(self, notifications, status_code=status.HTTP_200_OK):
        serializer = self.get_serializer(notifications, many=True)
        return Response({
            'count': len(notifications),
            'notifications': serializer.data
        }, status=status_code)

    def _bulk_options(self, request):
        return self._options(NotificationIndexOptionsSerializer, request.data or request.query_params)

    def list(self, request, *args, **kwargs):
        """Notification index of the target, unopened first"""
        options = self._options(NotificationIndexOptionsSerializer, request.query_params)
        target = self.get_target()
        index_filter = options.get('filter')
        if index_filter == 'unopened':
            notifications = list(target.unopened_notification_index_with_attributes(**options))
        elif index_filter == 'opened':
            notifications = list(target.opened_notification_index_with_attributes(**options))
        else:
            notifications = target.notification_index_with_attributes(**options)
        return self._render_notifications(notifications)

    @action(detail=False, methods=['post'])
    def open_all(self, request, *args, **kwargs):
        """Open all unopened notifications matching the filter options"""
        notifications = self.get_target().open_all_notifications(**self._bulk_options(request))
        return self._render_notifications(notifications)

    @action(detail=False, methods=['post'])
    def destroy_all(self, request, *args, **kwargs):
        """Delete all notifications matching the filter options"""
        target = self.get_target()
        options = self._bulk_options(request)
        notifications = target.notifications.filtered_by_options(options)
        if options.get('ids'):
            notifications = notifications.filter(id__in=options['ids'])
        data = self.get_serializer(list(notifications), many=True).data
        destroyed = target.destroy_all_notifications(**options)
        return Response({
            'count': len(destroyed),
            'notifications': data
        })

    def retrieve(self, request, *args, **kwargs):
        notification = self.get_object()
        return Response(self.get_serializer(notification).data)

    def destroy(self, request, *args, **kwargs):
        notification = self.get_object()
        notification.delete()
        logger.info(f"Deleted notification {kwargs.get('pk')}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['put'])
    def open(self, request, *args, **kwargs):
        """Open the notification and its group members, optionally moving to the notifiable"""
        notification = self.get_object()
        with_members = to_boolean(request.query_params.get('with_members', request.data.get('with_members')), True)
        count = notification.open(with_members=with_members)
        if to_boolean(request.query_params.get('move', request.data.get('move')), False):
            return self._move_to_notifiable(notification, {'count': count})
        return Response({
            'count': count,
            'notification': self.get_serializer(notification).data
        })

    @action(detail=True, methods=['get'])
    def move(self, request, *args, **kwargs):
        """Redirect to the notifiable, opening the notification when ``open`` is given"""
        notification = self.get_object()
        data = {}
        if to_boolean(request.query_params.get('open'), False):
            data['count'] = notification.open()
        return self._move_to_notifiable(notification, data)

    def _move_to_notifiable(self, notification, data):
        location = notification.notifiable_path()
        if not location:
            raise NotFound("Couldn't find notifiable path")
        data['location'] = location
        return Response(data, status=status.HTTP_302_FOUND, headers={'Location': location})


class SubscriptionsAPIViewSet(TargetViewSet):
    """ViewSet for subscriptions of a target"""
    record_model = Subscription
    serializer_class = SubscriptionSerializer

    def get_queryset(self):
        return self.get_target().subscriptions.with_target()

    def list(self, request, *args, **kwargs):
        """Configured subscriptions and notification keys without subscription"""
        options = self._options(SubscriptionIndexOptionsSerializer, request.query_params)
        target = self.get_target()
        index_filter = options.pop('filter', None)

        subscriptions = []
        if index_filter != 'unconfigured':
            subscriptions = list(target.subscription_index(with_target=True, **options))
        notification_keys = []
        if index_filter != 'configured':
            notification_keys = target.notification_keys(
                limit=options.get('limit'),
                reverse=options.get('reverse', False),
                filter='unconfigured',
                **({'filtered_by_key': options['filtered_by_key']} if 'filtered_by_key' in options else {})
            )

        return Response({
            'configured_count': len(subscriptions),
            'subscriptions': self.get_serializer(subscriptions, many=True).data,
            'unconfigured_count': len(notification_keys),
            'unconfigured_notification_keys': notification_keys
        })

    def create(self, request, *args, **kwargs):
        data = request.data.get('subscription', request.data)
        serializer = SubscriptionCreateSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        subscription = self.get_target().create_subscription(**serializer.validated_data)
        return Response(self.get_serializer(subscription).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def find(self, request, *args, **kwargs):
        """Find the subscription of the target by ``key``"""
        key = request.query_params.get('key')
        if not key:
            raise InvalidParameterError("Parameter is missing or the value is empty: key")
        subscription = self.get_target().find_subscription(key)
        if subscription is None:
            raise NotFound("Couldn't find subscription")
        return Response(self.get_serializer(subscription).data)

    def retrieve(self, request, *args, **kwargs):
        return Response(self.get_serializer(self.get_object()).data)

    def destroy(self, request, *args, **kwargs):
        subscription = self.get_object()
        subscription.delete()
        logger.info(f"Deleted subscription {kwargs.get('pk')}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['put'])
    def subscribe(self, request, *args, **kwargs):
        subscription = self.get_object()
        with_email_subscription = to_boolean(
            request.query_params.get('with_email_subscription', request.data.get('with_email_subscription')),
            settings.SUBSCRIBE_TO_EMAIL_AS_DEFAULT
        )
        subscription.subscribe(with_email_subscription=with_email_subscription)
        return Response(self.get_serializer(subscription).data)

    @action(detail=True, methods=['put'])
    def unsubscribe(self, request, *args, **kwargs):
        subscription = self.get_object()
        subscription.unsubscribe()
        return Response(self.get_serializer(subscription).data)

    @action(detail=True, methods=['put'])
    def subscribe_to_email(self, request, *args, **kwargs):
        subscription = self.get_object()
        subscription.subscribe_to_email()
        return Response(self.get_serializer(subscription).data)

    @action(detail=True, methods=['put'])
    def unsubscribe_to_email(self, request, *args, **kwargs):
        subscription = self.get_object()
        subscription.unsubscribe_to_email()
        return Response(self.get_serializer(subscription).data)


class WithAuthMixin:
    """
    Require an authenticated user standing for the target.

    Authentication classes come from ``AUTHENTICATION_CLASSES``.
    """
    permission_classes = [permissions.IsAuthenticated, IsAuthenticatedTarget]

    def get_authenticators(self):
        return [import_string(path)() for path in settings.AUTHENTICATION_CLASSES]


class NotificationsWithAuthAPIViewSet(WithAuthMixin, NotificationsAPIViewSet):
    """ViewSet for notifications of the authenticated target"""
    pass


class SubscriptionsWithAuthAPIViewSet(WithAuthMixin, SubscriptionsAPIViewSet):
    """ViewSet for subscriptions of the authenticated target"""
    pass
