"""
Domain exceptions for analytics app.

Exception Hierarchy:
    AnalyticsServiceError (base)
    ├── InvalidDateRangeError
    ├── InvalidForecastTypeError
    └── InvalidScenarioError

Usage:
    from apps.analytics.exceptions import InvalidScenarioError

    if scenario not in SCENARIOS:
        raise InvalidScenarioError(f"Invalid scenario: {scenario}")
"""


class AnalyticsServiceError(Exception):
    """
    Base exception for all analytics service errors.

    Views catch it to turn any analytics error into a 400:

        try:
            data = AnalyticsQueries.forecast(kind='weather')
        except AnalyticsServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class InvalidDateRangeError(AnalyticsServiceError):
    """Raised when date_from is after date_to."""

    pass


class InvalidForecastTypeError(AnalyticsServiceError):
    """
    Raised when the forecast type is unknown.

    Valid types are: income, expenses, cashflow.
    """

    pass


class InvalidScenarioError(AnalyticsServiceError):
    """
    Raised when the forecast scenario is unknown.

    Valid scenarios are: conservative, optimistic, pessimistic.
    """

    pass
