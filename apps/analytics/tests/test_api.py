import pytest
from decimal import Decimal
from datetime import date
from django.urls import reverse
from rest_framework import status


# =============================================================================
# Dashboard Endpoint Tests
# =============================================================================

@pytest.mark.django_db
class TestDashboard:
    """Tests for GET /api/analytics/dashboard/"""

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('analytics:dashboard'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_free_tier_can_see_dashboard(self, free_client, march_ledger):
        """The dashboard is a free feature."""
        response = free_client.get(reverse('analytics:dashboard'), {
            'date_from': '2024-03-01',
            'date_to': '2024-03-31',
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.data['summary']['total_income'] == Decimal('3000.00')
        assert response.data['summary']['transaction_count'] == 4
        assert len(response.data['monthly_trend']) == 12

    def test_invalid_date_range(self, free_client):
        response = free_client.get(reverse('analytics:dashboard'), {
            'date_from': '2024-04-01',
            'date_to': '2024-03-01',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'date_from' in response.data


# =============================================================================
# Analytics Endpoint Tests
# =============================================================================

@pytest.mark.django_db
class TestAnalyticsEndpoints:

    def test_free_tier_blocked(self, free_client):
        """Analytics needs the premium tier."""
        response = free_client.get(reverse('analytics:category-breakdown'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'premium' in str(response.data['detail'])

    def test_category_breakdown(self, premium_client, march_ledger):
        response = premium_client.get(reverse('analytics:category-breakdown'), {
            'date_from': '2024-03-01',
            'date_to': '2024-03-31',
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_expenses'] == Decimal('500.00')

    def test_spending_by_origin(self, premium_client, march_ledger):
        response = premium_client.get(reverse('analytics:spending-by-origin'), {
            'date_from': '2024-03-01',
            'date_to': '2024-03-31',
        })

        assert response.status_code == status.HTTP_200_OK
        assert [row['origin'] for row in response.data] == ['Comum', 'Joana']

    def test_major_categories(self, premium_client, march_ledger):
        response = premium_client.get(reverse('analytics:major-category-breakdown'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['major_category'] == 'CUSTOS_FIXOS'

    def test_trend_months_param(self, premium_client, make_transaction, salary):
        make_transaction(day=date.today(), category=salary, amount='1200.00')

        response = premium_client.get(reverse('analytics:monthly-trend'), {'months': 3})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 3
        assert response.data[-1]['income'] == Decimal('1200.00')

    def test_trend_months_out_of_range(self, premium_client):
        response = premium_client.get(reverse('analytics:monthly-trend'), {'months': 0})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_forecast_defaults(self, premium_client):
        response = premium_client.get(reverse('analytics:forecast'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['forecast']) == 6
        assert response.data['metadata']['type'] == 'cashflow'
        assert response.data['metadata']['scenario'] == 'conservative'

    def test_forecast_invalid_scenario(self, premium_client):
        response = premium_client.get(reverse('analytics:forecast'), {'scenario': 'wild'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'scenario' in response.data
