import pytest
from uuid import uuid4
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User
from apps.accounts.services import get_user_by_email, get_user_email


# =============================================================================
# User Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserManager:
    """Tests for the email based user manager."""

    def test_username_defaults_to_email_prefix(self):
        user = User.objects.create_user(email='jane@example.com', password='x')

        assert user.username == 'jane'
        assert user.check_password('x')
        assert user.get_display_name() == 'jane'

    def test_email_required(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='x')

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='root@example.com', password='x')

        assert admin.is_staff
        assert admin.is_superuser


# =============================================================================
# Identity Service Tests
# =============================================================================

@pytest.mark.django_db
class TestIdentityLookups:
    """Tests for identity.py service functions."""

    def test_get_user_email(self, user):
        assert get_user_email(user_id=user.id) == 'testuser@example.com'
        assert get_user_email(user_id=uuid4()) is None

    def test_get_user_by_email_ignores_case(self, user):
        assert get_user_by_email(email='TestUser@Example.com ') == user

    def test_get_user_by_email_skips_inactive(self, inactive_user):
        assert get_user_by_email(email=inactive_user.email) is None


# =============================================================================
# Token API Tests
# =============================================================================

@pytest.mark.django_db
class TestTokenObtain:
    """Tests for POST /api/auth/token/"""

    def test_obtain_token_pair(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(
            url,
            {'email': 'testuser@example.com', 'password': 'TestPass123!'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_wrong_password(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(
            url,
            {'email': 'testuser@example.com', 'password': 'wrong'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] == 0

    def test_refresh_token(self, api_client, user):
        obtain = api_client.post(
            reverse('token_obtain_pair'),
            {'email': 'testuser@example.com', 'password': 'TestPass123!'},
            format='json'
        )
        response = api_client.post(
            reverse('token_refresh'),
            {'refresh': obtain.data['refresh']},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
