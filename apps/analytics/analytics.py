"""
Analytics Module
=================

Read-only aggregates over the family ledger that power the dashboard,
charts and the forecast view.

Classes:
    AnalyticsQueries: Static methods for the analytics endpoints.

Key Features:
    - Income / outgoings / net summary with top categories
    - Expense breakdowns by category, origin and major category
    - Monthly trend for charts
    - Deterministic cash-flow forecast with scenarios

Example:
    Dashboard numbers for March 2024::

        from apps.analytics.analytics import AnalyticsQueries

        data = AnalyticsQueries.summary(
            date_from=date(2024, 3, 1),
            date_to=date(2024, 3, 31),
        )
        print(data['summary']['net_amount'])

Note:
    Every method returns plain dictionaries or lists so views can hand them
    straight to ``Response``.
"""

from datetime import date
from decimal import Decimal

from django.db.models import Sum, Count, Q, DecimalField, Value
from django.db.models.functions import TruncMonth, Coalesce

from apps.ledger.models import Transaction, TransactionFlow, MajorCategory, Month
from .exceptions import InvalidForecastTypeError, InvalidScenarioError


ZERO = Decimal('0.00')

FORECAST_TYPES = ('income', 'expenses', 'cashflow')

# growth multiplier applied to the trend, base confidence for month 0
SCENARIOS = {
    'conservative': {'growth': 0.8, 'confidence': 0.95},
    'optimistic': {'growth': 1.3, 'confidence': 0.85},
    'pessimistic': {'growth': 0.6, 'confidence': 0.90},
}

CONFIDENCE_DECAY = 0.03
CONFIDENCE_FLOOR = 0.5
TREND_THRESHOLD = 0.02
HISTORY_MONTHS = 6

FORECAST_FACTORS = {
    'cashflow': ['historical_pattern', 'income_growth_trend', 'expense_optimization'],
    'expenses': ['inflation_impact', 'lifestyle_changes', 'seasonal_patterns'],
    'income': ['career_progression', 'skill_development', 'market_demand'],
}
SCENARIO_FACTORS = {
    'conservative': 'risk_mitigation',
    'optimistic': 'growth_opportunities',
    'pessimistic': 'economic_uncertainty',
}

_money = DecimalField(max_digits=14, decimal_places=2)


def _sum(field, **filters):
    return Coalesce(Sum(field, filter=Q(**filters) if filters else None), Value(ZERO), output_field=_money)


def _percentage(part, total):
    if not total:
        return 0.0
    return round(float(part) / float(total) * 100, 2)


def _add_months(day, months):
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _month_label(day):
    return list(Month)[day.month - 1].value


class AnalyticsQueries:
    """
    Aggregation queries for the analytics endpoints.

    Methods:
        filtered_transactions: Base queryset for the common filters.
        summary: Totals, top categories and 12-month trend.
        category_breakdown: Expenses per category.
        spending_by_origin: Expenses per origin.
        major_category_breakdown: Expenses per major category.
        monthly_trend: Income / expenses / net per month.
        forecast: Projection for the coming months.
    """

    @staticmethod
    def filtered_transactions(date_from=None, date_to=None, origin=None, bank=None, category=None):
        queryset = Transaction.objects.all()

        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        if origin:
            queryset = queryset.filter(origin_id=origin)
        if bank:
            queryset = queryset.filter(bank_id=bank)
        if category:
            queryset = queryset.filter(category_id=category)

        return queryset

    @staticmethod
    def summary(date_from=None, date_to=None, origin=None, bank=None, today=None):
        """
        Dashboard summary for a period.

        Args:
            date_from (date, optional): Start of period.
            date_to (date, optional): End of period.
            origin (UUID, optional): Restrict to one origin.
            bank (UUID, optional): Restrict to one bank.
            today (date, optional): Reference date for the trend window.

        Returns:
            dict: A dictionary containing:
                - summary: total_income, total_outgoings, net_amount,
                  transaction_count, period {from, to}
                - category_breakdown: top 10 categories by transaction count;
                  percentage is of income + outgoings
                - monthly_trend: last 12 months (see monthly_trend)
        """
        queryset = AnalyticsQueries.filtered_transactions(
            date_from=date_from, date_to=date_to, origin=origin, bank=bank
        )

        totals = queryset.aggregate(
            total_income=_sum('incomes', flow=TransactionFlow.INCOME),
            total_outgoings=_sum('outgoings', flow=TransactionFlow.EXPENSE),
            transaction_count=Count('id'),
        )
        total_income = totals['total_income']
        total_outgoings = totals['total_outgoings']
        grand_total = total_income + total_outgoings

        rows = (
            queryset
            .values(
                'category_id',
                'category__category',
                'category__sub_category',
                'category__major_category',
                'category__flow',
            )
            .annotate(
                amount=Coalesce(Sum('incomes'), Value(ZERO), output_field=_money)
                + Coalesce(Sum('outgoings'), Value(ZERO), output_field=_money),
                transaction_count=Count('id'),
            )
            .order_by('-transaction_count', '-amount')[:10]
        )

        breakdown = [
            {
                'category_id': str(row['category_id']),
                'category': row['category__category'],
                'sub_category': row['category__sub_category'],
                'major_category': row['category__major_category'],
                'flow': row['category__flow'],
                'amount': row['amount'],
                'percentage': _percentage(row['amount'], grand_total),
                'transaction_count': row['transaction_count'],
            }
            for row in rows
        ]

        return {
            'summary': {
                'total_income': total_income,
                'total_outgoings': total_outgoings,
                'net_amount': total_income - total_outgoings,
                'transaction_count': totals['transaction_count'],
                'period': {'from': date_from, 'to': date_to},
            },
            'category_breakdown': breakdown,
            'monthly_trend': AnalyticsQueries.monthly_trend(
                months=12, origin=origin, bank=bank, today=today
            ),
        }

    @staticmethod
    def category_breakdown(date_from=None, date_to=None, origin=None, bank=None):
        """
        Expenses grouped by category, largest first.

        Returns:
            dict: ``categories`` (category, sub_category, major_category,
            amount, percentage, transaction_count) and ``total_expenses``.
        """
        queryset = AnalyticsQueries.filtered_transactions(
            date_from=date_from, date_to=date_to, origin=origin, bank=bank
        ).filter(flow=TransactionFlow.EXPENSE)

        rows = list(
            queryset
            .values('category_id', 'category__category', 'category__sub_category', 'category__major_category')
            .annotate(amount=_sum('outgoings'), transaction_count=Count('id'))
            .order_by('-amount')
        )
        total = sum((row['amount'] for row in rows), ZERO)

        return {
            'categories': [
                {
                    'category_id': str(row['category_id']),
                    'category': row['category__category'],
                    'sub_category': row['category__sub_category'],
                    'major_category': row['category__major_category'],
                    'amount': row['amount'],
                    'percentage': _percentage(row['amount'], total),
                    'transaction_count': row['transaction_count'],
                }
                for row in rows
            ],
            'total_expenses': total,
        }

    @staticmethod
    def spending_by_origin(date_from=None, date_to=None, bank=None):
        """Expenses per origin (family member or joint account)."""
        queryset = AnalyticsQueries.filtered_transactions(
            date_from=date_from, date_to=date_to, bank=bank
        ).filter(flow=TransactionFlow.EXPENSE)

        rows = list(
            queryset
            .values('origin_id', 'origin__name')
            .annotate(amount=_sum('outgoings'), transaction_count=Count('id'))
            .order_by('-amount')
        )
        total = sum((row['amount'] for row in rows), ZERO)

        return [
            {
                'origin_id': str(row['origin_id']),
                'origin': row['origin__name'],
                'amount': row['amount'],
                'percentage': _percentage(row['amount'], total),
                'transaction_count': row['transaction_count'],
            }
            for row in rows
        ]

    @staticmethod
    def major_category_breakdown(date_from=None, date_to=None, origin=None, bank=None):
        """Expenses per major category (fixed costs, guilt-free spending, ...)."""
        queryset = AnalyticsQueries.filtered_transactions(
            date_from=date_from, date_to=date_to, origin=origin, bank=bank
        ).filter(flow=TransactionFlow.EXPENSE)

        rows = list(
            queryset
            .values('category__major_category')
            .annotate(amount=_sum('outgoings'), transaction_count=Count('id'))
            .order_by('-amount')
        )
        total = sum((row['amount'] for row in rows), ZERO)

        return [
            {
                'major_category': row['category__major_category'],
                'label': MajorCategory(row['category__major_category']).label,
                'amount': row['amount'],
                'percentage': _percentage(row['amount'], total),
                'transaction_count': row['transaction_count'],
            }
            for row in rows
        ]

    @staticmethod
    def monthly_trend(months=12, origin=None, bank=None, today=None):
        """
        Income, expenses and net per month, oldest first.

        Every month of the window is present, with zeros when nothing was
        recorded.

        Args:
            months (int): Window size including the current month.
            today (date, optional): Reference date, defaults to today.

        Returns:
            list[dict]: period ('YYYY-MM'), month (ledger month name), year,
            income, expenses, net.
        """
        today = today or date.today()
        start = _add_months(today, -(months - 1))

        rows = (
            AnalyticsQueries.filtered_transactions(date_from=start, date_to=today, origin=origin, bank=bank)
            .annotate(period=TruncMonth('date'))
            .values('period')
            .annotate(
                income=_sum('incomes', flow=TransactionFlow.INCOME),
                expenses=_sum('outgoings', flow=TransactionFlow.EXPENSE),
            )
            .order_by('period')
        )
        by_period = {
            (row['period'].year, row['period'].month): row
            for row in rows
        }

        trend = []
        for offset in range(months):
            month_start = _add_months(start, offset)
            row = by_period.get((month_start.year, month_start.month), {})
            income = row.get('income', ZERO)
            expenses = row.get('expenses', ZERO)
            trend.append({
                'period': month_start.strftime('%Y-%m'),
                'month': _month_label(month_start),
                'year': month_start.year,
                'income': income,
                'expenses': expenses,
                'net': income - expenses,
            })

        return trend

    @staticmethod
    def forecast(months=6, kind='cashflow', scenario='conservative', today=None):
        """
        Project income, expenses or cash flow for the coming months.

        The projection starts from the average of the last six complete
        months and adds the least-squares monthly trend scaled by the
        scenario's growth multiplier. Confidence starts at the scenario base
        and drops 0.03 per month, never below 0.5.

        Args:
            months (int): Number of months to project.
            kind (str): 'income', 'expenses' or 'cashflow'.
            scenario (str): 'conservative', 'optimistic' or 'pessimistic'.
            today (date, optional): Reference date, defaults to today.

        Returns:
            dict: ``forecast`` (period, predicted, confidence, trend,
            factors) and ``metadata`` (type, scenario, confidence,
            history, base_value, monthly_trend).

        Raises:
            InvalidForecastTypeError: Unknown kind.
            InvalidScenarioError: Unknown scenario.
        """
        if kind not in FORECAST_TYPES:
            raise InvalidForecastTypeError(
                f"Invalid forecast type: '{kind}'. Valid options: {', '.join(FORECAST_TYPES)}"
            )
        if scenario not in SCENARIOS:
            raise InvalidScenarioError(
                f"Invalid scenario: '{scenario}'. Valid options: {', '.join(SCENARIOS)}"
            )

        today = today or date.today()
        first_of_month = today.replace(day=1)
        history = AnalyticsQueries.monthly_trend(
            months=HISTORY_MONTHS + 1, today=today
        )[:HISTORY_MONTHS]

        key = {'income': 'income', 'expenses': 'expenses', 'cashflow': 'net'}[kind]
        values = [float(point[key]) for point in history]

        base_value = sum(values) / len(values)
        slope = _linear_slope(values)
        params = SCENARIOS[scenario]
        growth = slope * params['growth']

        forecast = []
        previous = base_value
        for month in range(1, months + 1):
            predicted = base_value + growth * month
            if kind != 'cashflow':
                predicted = max(0.0, predicted)

            confidence = round(max(CONFIDENCE_FLOOR, params['confidence'] - month * CONFIDENCE_DECAY), 2)
            trend = _trend_direction(previous, predicted)

            forecast.append({
                'period': _add_months(first_of_month, month).strftime('%Y-%m'),
                'predicted': round(predicted, 2),
                'confidence': confidence,
                'trend': trend,
                'factors': FORECAST_FACTORS[kind] + [SCENARIO_FACTORS[scenario]],
            })
            previous = predicted

        overall = round(sum(p['confidence'] for p in forecast) / len(forecast), 2) if forecast else 0.0

        return {
            'forecast': forecast,
            'metadata': {
                'type': kind,
                'scenario': scenario,
                'confidence': overall,
                'history': [{'period': p['period'], 'value': round(v, 2)} for p, v in zip(history, values)],
                'base_value': round(base_value, 2),
                'monthly_trend': round(slope, 2),
            },
        }


def _linear_slope(values):
    """Least-squares slope of evenly spaced values."""
    n = len(values)
    if n < 2:
        return 0.0

    mean_x = (n - 1) / 2
    mean_y = sum(values) / n
    numerator = sum((x - mean_x) * (y - mean_y) for x, y in enumerate(values))
    denominator = sum((x - mean_x) ** 2 for x in range(n))
    return numerator / denominator


def _trend_direction(previous, predicted):
    if previous == 0:
        if predicted > 0:
            return 'up'
        if predicted < 0:
            return 'down'
        return 'stable'

    change = (predicted - previous) / abs(previous)
    if change > TREND_THRESHOLD:
        return 'up'
    if change < -TREND_THRESHOLD:
        return 'down'
    return 'stable'
