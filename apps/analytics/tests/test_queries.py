import pytest
from decimal import Decimal
from datetime import date
from apps.analytics.analytics import AnalyticsQueries
from apps.analytics.exceptions import InvalidForecastTypeError, InvalidScenarioError
from apps.ledger.models import MajorCategory

MARCH = {'date_from': date(2024, 3, 1), 'date_to': date(2024, 3, 31)}


# =============================================================================
# Summary
# =============================================================================

@pytest.mark.django_db
class TestSummary:

    def test_totals(self, march_ledger):
        """Income, outgoings and net for the period."""
        data = AnalyticsQueries.summary(**MARCH, today=date(2024, 3, 31))
        summary = data['summary']

        assert summary['total_income'] == Decimal('3000.00')
        assert summary['total_outgoings'] == Decimal('500.00')
        assert summary['net_amount'] == Decimal('2500.00')
        assert summary['transaction_count'] == 4
        assert summary['period'] == {'from': date(2024, 3, 1), 'to': date(2024, 3, 31)}

    def test_category_breakdown_percentage_of_all_money(self, march_ledger):
        """Percentages are relative to income + outgoings."""
        data = AnalyticsQueries.summary(**MARCH, today=date(2024, 3, 31))
        top = data['category_breakdown'][0]

        assert top['sub_category'] == 'Supermercado'
        assert top['transaction_count'] == 2
        assert top['amount'] == Decimal('400.00')
        assert top['percentage'] == round(400 / 3500 * 100, 2)

    def test_origin_filter(self, march_ledger, joana):
        data = AnalyticsQueries.summary(**MARCH, origin=joana.id, today=date(2024, 3, 31))

        assert data['summary']['total_outgoings'] == Decimal('100.00')
        assert data['summary']['total_income'] == Decimal('0.00')

    def test_empty_ledger(self, db):
        data = AnalyticsQueries.summary(today=date(2024, 3, 31))

        assert data['summary']['net_amount'] == Decimal('0.00')
        assert data['category_breakdown'] == []
        assert len(data['monthly_trend']) == 12


# =============================================================================
# Breakdowns
# =============================================================================

@pytest.mark.django_db
class TestBreakdowns:

    def test_category_breakdown_expenses_only(self, march_ledger):
        data = AnalyticsQueries.category_breakdown(**MARCH)

        assert data['total_expenses'] == Decimal('500.00')
        assert [c['sub_category'] for c in data['categories']] == ['Supermercado', 'Date Night']
        assert data['categories'][0]['percentage'] == 80.0

    def test_spending_by_origin(self, march_ledger):
        rows = AnalyticsQueries.spending_by_origin(**MARCH)

        assert [(r['origin'], r['amount']) for r in rows] == [
            ('Comum', Decimal('400.00')),
            ('Joana', Decimal('100.00')),
        ]
        assert rows[1]['percentage'] == 20.0

    def test_major_category_breakdown(self, march_ledger):
        rows = AnalyticsQueries.major_category_breakdown(**MARCH)

        assert rows[0]['major_category'] == MajorCategory.FIXED_COSTS
        assert rows[0]['label'] == 'Fixed costs'
        assert rows[1]['major_category'] == MajorCategory.GUILT_FREE


# =============================================================================
# Monthly trend
# =============================================================================

@pytest.mark.django_db
class TestMonthlyTrend:

    def test_fills_missing_months(self, march_ledger):
        trend = AnalyticsQueries.monthly_trend(months=4, today=date(2024, 5, 10))

        assert [p['period'] for p in trend] == ['2024-02', '2024-03', '2024-04', '2024-05']
        assert trend[0]['income'] == Decimal('0.00')
        assert trend[1]['income'] == Decimal('3000.00')
        assert trend[1]['expenses'] == Decimal('500.00')
        assert trend[1]['net'] == Decimal('2500.00')
        assert trend[1]['month'] == 'MARCO'
        assert trend[2]['expenses'] == Decimal('999.00')

    def test_window_crosses_year(self, db):
        trend = AnalyticsQueries.monthly_trend(months=3, today=date(2024, 1, 5))
        assert [p['period'] for p in trend] == ['2023-11', '2023-12', '2024-01']


# =============================================================================
# Forecast
# =============================================================================

@pytest.mark.django_db
class TestForecast:

    TODAY = date(2024, 6, 15)
    HISTORY = [date(2023, 12, 10), date(2024, 1, 10), date(2024, 2, 10),
               date(2024, 3, 10), date(2024, 4, 10), date(2024, 5, 10)]

    def test_flat_income_is_stable(self, make_transaction, salary):
        """Constant income projects the same value with a stable trend."""
        for day in self.HISTORY:
            make_transaction(day=day, category=salary, amount='2000.00')

        data = AnalyticsQueries.forecast(months=3, kind='income', today=self.TODAY)

        assert [p['period'] for p in data['forecast']] == ['2024-07', '2024-08', '2024-09']
        assert all(p['predicted'] == 2000.0 for p in data['forecast'])
        assert all(p['trend'] == 'stable' for p in data['forecast'])
        assert data['metadata']['base_value'] == 2000.0

    def test_growing_expenses_scaled_by_scenario(self, make_transaction, groceries):
        """Trend of +100/month is scaled by the growth multiplier."""
        for index, day in enumerate(self.HISTORY):
            make_transaction(day=day, category=groceries, amount=100 * (index + 1))

        conservative = AnalyticsQueries.forecast(months=2, kind='expenses', today=self.TODAY)
        optimistic = AnalyticsQueries.forecast(
            months=1, kind='expenses', scenario='optimistic', today=self.TODAY
        )

        assert conservative['metadata']['base_value'] == 350.0
        assert conservative['metadata']['monthly_trend'] == 100.0
        assert conservative['forecast'][0]['predicted'] == 430.0
        assert conservative['forecast'][1]['predicted'] == 510.0
        assert conservative['forecast'][0]['trend'] == 'up'
        assert optimistic['forecast'][0]['predicted'] == 480.0

    def test_confidence_decay_and_floor(self, db):
        data = AnalyticsQueries.forecast(months=24, kind='cashflow', today=self.TODAY)
        confidences = [p['confidence'] for p in data['forecast']]

        assert confidences[0] == 0.92
        assert confidences[1] == 0.89
        assert min(confidences) == 0.5
        assert confidences[-1] == 0.5

    def test_scenario_base_confidence(self, db):
        optimistic = AnalyticsQueries.forecast(months=1, scenario='optimistic', today=self.TODAY)
        pessimistic = AnalyticsQueries.forecast(months=1, scenario='pessimistic', today=self.TODAY)

        assert optimistic['forecast'][0]['confidence'] == 0.82
        assert pessimistic['forecast'][0]['confidence'] == 0.87

    def test_expenses_never_negative(self, make_transaction, groceries):
        for index, day in enumerate(self.HISTORY):
            make_transaction(day=day, category=groceries, amount=600 - 100 * index)

        data = AnalyticsQueries.forecast(months=12, kind='expenses', scenario='optimistic', today=self.TODAY)

        assert all(p['predicted'] >= 0 for p in data['forecast'])
        assert data['forecast'][0]['trend'] == 'down'

    def test_invalid_type(self, db):
        with pytest.raises(InvalidForecastTypeError):
            AnalyticsQueries.forecast(kind='weather')

    def test_invalid_scenario(self, db):
        with pytest.raises(InvalidScenarioError):
            AnalyticsQueries.forecast(scenario='wild')
