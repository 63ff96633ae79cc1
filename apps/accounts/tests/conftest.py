import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, SubscriptionTier, UserRole


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a free-tier test user."""
    return User.objects.create_user(
        email='testuser@example.com',
        password='TestPass123!',
        display_name='Test User',
    )


@pytest.fixture
def user_inactive(db):
    """Create and return an inactive user."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        display_name='Inactive User',
        is_active=False,
    )


@pytest.fixture
def premium_user(db):
    """Create a premium subscriber."""
    return User.objects.create_user(
        email='premium@example.com',
        password='TestPass123!',
        display_name='Premium User',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def expired_premium_user(db):
    """Premium subscriber whose subscription ended yesterday."""
    return User.objects.create_user(
        email='expired@example.com',
        password='TestPass123!',
        subscription_tier=SubscriptionTier.PREMIUM,
        subscription_expires_at=timezone.now() - timedelta(days=1),
    )


@pytest.fixture
def admin_user(db):
    """Create an administrator."""
    return User.objects.create_user(
        email='admin@example.com',
        password='AdminPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as administrator."""
    refresh = RefreshToken.for_user(admin_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
