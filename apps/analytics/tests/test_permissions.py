"""
Tests for the feature gating applied to analytics views.
"""
import pytest
from unittest.mock import Mock
from apps.accounts.models import User, SubscriptionTier
from apps.accounts.permissions import feature_required


@pytest.mark.django_db
class TestAnalyticsFeatureGate:
    """feature_required('analytics') as used by the analytics views."""

    def test_premium_allowed(self, premium_user):
        permission = feature_required('analytics')()

        request = Mock()
        request.user = premium_user

        assert permission.has_permission(request, Mock()) is True

    def test_basic_denied_with_upgrade_hint(self, db):
        basic = User.objects.create_user(
            email='basic@example.com',
            password='TestPass123!',
            subscription_tier=SubscriptionTier.BASIC,
        )
        permission = feature_required('analytics')()

        request = Mock()
        request.user = basic

        assert permission.has_permission(request, Mock()) is False
        assert 'premium' in permission.message

    def test_override_grants_access(self, free_user):
        """A custom permission can unlock analytics for a free user."""
        free_user.custom_permissions = {'analytics': True}
        free_user.save()
        permission = feature_required('analytics')()

        request = Mock()
        request.user = free_user

        assert permission.has_permission(request, Mock()) is True

    def test_dashboard_is_free(self, free_user):
        permission = feature_required('dashboard')()

        request = Mock()
        request.user = free_user

        assert permission.has_permission(request, Mock()) is True
