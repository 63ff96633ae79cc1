"""
Serializers for analytics app.

This module contains:
1. Input serializers - Query parameter validation
2. Response serializers - API documentation and output formatting

Input Serializers:
    AnalyticsFilterSerializer - Date range, origin and bank filters
    TrendQuerySerializer - Monthly trend window
    ForecastQuerySerializer - Forecast horizon, type and scenario

Response Serializers:
    SummaryResponseSerializer - Dashboard summary
    CategoryBreakdownResponseSerializer - Expenses per category
    OriginSpendingSerializer - Expenses per origin
    MajorCategorySpendingSerializer - Expenses per major category
    TrendPointSerializer - One month of the trend
    ForecastResponseSerializer - Forecast with metadata
"""

from rest_framework import serializers

from .analytics import FORECAST_TYPES, SCENARIOS


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class AnalyticsFilterSerializer(serializers.Serializer):
    """
    Validate the common analytics filters.

    Query Parameters:
        date_from (date): Start of period
        date_to (date): End of period
        origin (UUID): Restrict to one origin
        bank (UUID): Restrict to one bank
    """

    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    origin = serializers.UUIDField(required=False)
    bank = serializers.UUIDField(required=False)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_from': 'Start date must be before end date'
            })

        return attrs


class TrendQuerySerializer(serializers.Serializer):
    origin = serializers.UUIDField(required=False)
    bank = serializers.UUIDField(required=False)
    months = serializers.IntegerField(
        min_value=1,
        max_value=36,
        required=False,
        default=12,
        help_text='Number of months including the current one (1-36)'
    )


class ForecastQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the forecast endpoint.

    Query Parameters:
        months (int): Months to project (1-24)
        type (str): 'income', 'expenses' or 'cashflow'
        scenario (str): 'conservative', 'optimistic' or 'pessimistic'
    """

    months = serializers.IntegerField(min_value=1, max_value=24, required=False, default=6)
    type = serializers.ChoiceField(choices=FORECAST_TYPES, required=False, default='cashflow')
    scenario = serializers.ChoiceField(choices=list(SCENARIOS), required=False, default='conservative')


# =============================================================================
# Response Serializers (API Documentation)
# =============================================================================

class SummaryTotalsSerializer(serializers.Serializer):
    total_income = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_outgoings = serializers.DecimalField(max_digits=14, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    transaction_count = serializers.IntegerField()
    period = serializers.DictField(help_text='{"from": date|null, "to": date|null}')


class CategoryAmountSerializer(serializers.Serializer):
    category_id = serializers.CharField()
    category = serializers.CharField()
    sub_category = serializers.CharField()
    major_category = serializers.CharField()
    flow = serializers.CharField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    percentage = serializers.FloatField()
    transaction_count = serializers.IntegerField()


class TrendPointSerializer(serializers.Serializer):
    period = serializers.CharField()
    month = serializers.CharField()
    year = serializers.IntegerField()
    income = serializers.DecimalField(max_digits=14, decimal_places=2)
    expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    net = serializers.DecimalField(max_digits=14, decimal_places=2)


class SummaryResponseSerializer(serializers.Serializer):
    summary = SummaryTotalsSerializer()
    category_breakdown = CategoryAmountSerializer(many=True)
    monthly_trend = TrendPointSerializer(many=True)


class CategoryBreakdownResponseSerializer(serializers.Serializer):
    categories = CategoryAmountSerializer(many=True)
    total_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)


class OriginSpendingSerializer(serializers.Serializer):
    origin_id = serializers.CharField()
    origin = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    percentage = serializers.FloatField()
    transaction_count = serializers.IntegerField()


class MajorCategorySpendingSerializer(serializers.Serializer):
    major_category = serializers.CharField()
    label = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    percentage = serializers.FloatField()
    transaction_count = serializers.IntegerField()


class ForecastPointSerializer(serializers.Serializer):
    period = serializers.CharField()
    predicted = serializers.FloatField()
    confidence = serializers.FloatField()
    trend = serializers.ChoiceField(choices=['up', 'down', 'stable'])
    factors = serializers.ListField(child=serializers.CharField())


class ForecastMetadataSerializer(serializers.Serializer):
    type = serializers.CharField()
    scenario = serializers.CharField()
    confidence = serializers.FloatField()
    base_value = serializers.FloatField()
    monthly_trend = serializers.FloatField()
    history = serializers.ListField(child=serializers.DictField())


class ForecastResponseSerializer(serializers.Serializer):
    forecast = ForecastPointSerializer(many=True)
    metadata = ForecastMetadataSerializer()


class ErrorSerializer(serializers.Serializer):
    """Response serializer for error messages."""
    error = serializers.CharField()
