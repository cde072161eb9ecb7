from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from cores.testing import create_test_user


class LoginTests(APITestCase):
    def test_token_carries_role(self):
        user = create_test_user(role="staff")
        response = self.client.post(reverse('login'), {
            'email': user.email, 'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['role'], 'staff')
        self.assertEqual(AccessToken(response.data['access'])['role'], 'staff')

    def test_inactive_user_cannot_log_in(self):
        user = create_test_user(is_active=False)
        response = self.client.post(reverse('login'), {
            'email': user.email, 'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profile_role_is_read_only(self):
        user = create_test_user()
        self.client.force_authenticate(user=user)
        response = self.client.patch(reverse('user-profile'), {'role': 'admin', 'first_name': 'Ada'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, 'student')
        self.assertEqual(user.first_name, 'Ada')
