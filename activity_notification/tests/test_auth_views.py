"""
Tests for the notification API with authentication.
"""
from django.test import override_settings
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from activity_notification.tests.base import NotificationAPITestCase
from activity_notification.tests.testapp.models import Admin, Member


class AuthAPITestCase(NotificationAPITestCase):
    """Base test case authenticating requests with JWT."""

    def authenticate(self, user):
        refresh = RefreshToken.for_user(user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')


class NotificationsWithAuthAPITest(AuthAPITestCase):
    """Test the notifications endpoints requiring an authenticated target."""

    def setUp(self):
        super().setUp()
        self.url = f'/api/v2/auth/users/{self.author.pk}/notifications/'
        self.notification = self.create_notification()

    def test_unauthenticated_request(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['gem'], 'activity_notification')
        self.assertEqual(response.data['error']['code'], 401)

    def test_authenticated_target(self):
        self.authenticate(self.author)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_other_authenticated_user(self):
        self.authenticate(self.user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 403)

    def test_session_authentication(self):
        self.client.force_login(self.author)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_open_with_auth(self):
        self.authenticate(self.author)

        response = self.client.put(f'{self.url}{self.notification.pk}/open/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_missing_target_with_auth(self):
        self.authenticate(self.author)

        response = self.client.get('/api/v2/auth/users/0/notifications/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @override_settings(ACTIVITY_NOTIFICATION={
        'AUTHENTICATION_CLASSES': ['rest_framework.authentication.SessionAuthentication'],
    })
    def test_configured_authentication_classes(self):
        self.authenticate(self.author)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdminNotificationsWithAuthAPITest(AuthAPITestCase):
    """Test targets authenticated through another user model."""

    def setUp(self):
        super().setUp()
        self.admin = Admin.objects.create(user=self.user)
        self.url = f'/api/v2/auth/admins/{self.admin.pk}/notifications/'
        comment = self.create_comment(user=self.other_user)
        self.notification = self.create_notification(target=self.admin, notifiable=comment)

    def test_user_standing_for_admin(self):
        self.authenticate(self.user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['notifications'][0]['id'], self.notification.pk)
        self.assertEqual(response.data['notifications'][0]['target_type'], 'testapp.admin')

    def test_other_user(self):
        self.authenticate(self.other_user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SubscriptionsWithAuthAPITest(AuthAPITestCase):
    """Test the subscriptions endpoints requiring an authenticated target."""

    def setUp(self):
        super().setUp()
        self.url = f'/api/v2/auth/users/{self.author.pk}/subscriptions/'

    def test_unauthenticated_request(self):
        response = self.client.post(self.url, {'key': 'comment.default'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_subscription(self):
        self.authenticate(self.author)

        response = self.client.post(self.url, {'key': 'comment.default'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.author.find_subscription('comment.default').pk, response.data['id'])

    def test_other_authenticated_user(self):
        self.authenticate(self.user)

        response = self.client.post(self.url, {'key': 'comment.default'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIsNone(self.author.find_subscription('comment.default'))


class CurrentTargetAPITest(AuthAPITestCase):
    """Test the endpoints of the target standing for the request user."""

    def setUp(self):
        super().setUp()
        self.notification = self.create_notification(target=self.author)
        self.create_notification(target=self.user)

    def test_unauthenticated_request(self):
        response = self.client.get('/api/v2/me/notifications/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_notifications_of_current_user(self):
        self.authenticate(self.author)

        response = self.client.get('/api/v2/me/notifications/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['id'] for n in response.data['notifications']], [self.notification.pk])

    def test_notification_of_other_user(self):
        self.authenticate(self.user)

        response = self.client.get(f'/api/v2/me/notifications/{self.notification.pk}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_subscriptions_of_current_user(self):
        self.authenticate(self.author)

        response = self.client.post('/api/v2/me/subscriptions/', {'key': 'comment.reply'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v2/me/subscriptions/')
        self.assertEqual(response.data['configured_count'], 1)
        self.assertEqual(response.data['unconfigured_notification_keys'], ['comment.default'])


class CallableDeviseResourceAPITest(AuthAPITestCase):
    """Test current target endpoints of a target resolving its user with a callable."""

    def setUp(self):
        super().setUp()
        self.member = Member.objects.create(user=self.user, name='User member')
        self.notification = self.create_notification(target=self.member)

    def test_notifications_of_current_member(self):
        self.authenticate(self.user)

        response = self.client.get('/api/v2/member/notifications/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['id'] for n in response.data['notifications']], [self.notification.pk])

    def test_user_without_member(self):
        self.authenticate(self.other_user)

        response = self.client.get('/api/v2/member/notifications/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
