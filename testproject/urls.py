"""
URL configuration of the project used by the activity notification tests.
"""
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

from activity_notification.tests.testapp.models import Admin, Member, User
from activity_notification.urls import notify_to, subscribed_by

api_patterns = notify_to('users', User) + subscribed_by('users', User)

auth_api_patterns = (
    notify_to('users', User, with_auth=True)
    + subscribed_by('users', User, with_auth=True)
    + notify_to('admins', Admin, with_auth=True)
)

current_target_patterns = (
    notify_to('users', User, current_target=True)
    + subscribed_by('users', User, current_target=True)
)

member_patterns = notify_to('members', Member, current_target=True)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v2/', include((api_patterns, 'activity_notification'), namespace='api')),
    path('api/v2/auth/', include((auth_api_patterns, 'activity_notification'), namespace='auth_api')),
    path('api/v2/me/', include((current_target_patterns, 'activity_notification'), namespace='current_api')),
    path('api/v2/member/', include((member_patterns, 'activity_notification'), namespace='member_api')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
