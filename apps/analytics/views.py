from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import feature_required
from .analytics import AnalyticsQueries
from .serializers import (
    # Input serializers
    AnalyticsFilterSerializer,
    TrendQuerySerializer,
    ForecastQuerySerializer,
    # Response serializers
    SummaryResponseSerializer,
    CategoryBreakdownResponseSerializer,
    OriginSpendingSerializer,
    MajorCategorySpendingSerializer,
    TrendPointSerializer,
    ForecastResponseSerializer,
    ErrorSerializer,
)
from .exceptions import AnalyticsServiceError


@extend_schema(
    parameters=[AnalyticsFilterSerializer],
    responses={
        200: SummaryResponseSerializer,
        400: ErrorSerializer,
    },
    description="Totals, top categories and the 12-month trend for the dashboard.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('dashboard')])
def dashboard(request):
    """Dashboard summary - thin HTTP handler."""
    query_serializer = AnalyticsFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = AnalyticsQueries.summary(**query_serializer.validated_data)
    return Response(data)


@extend_schema(
    parameters=[AnalyticsFilterSerializer],
    responses={
        200: CategoryBreakdownResponseSerializer,
        400: ErrorSerializer,
    },
    description="Expenses per category with share of total expenses.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('analytics')])
def category_breakdown(request):
    query_serializer = AnalyticsFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = AnalyticsQueries.category_breakdown(**query_serializer.validated_data)
    return Response(data)


@extend_schema(
    parameters=[AnalyticsFilterSerializer],
    responses={
        200: OriginSpendingSerializer(many=True),
        400: ErrorSerializer,
    },
    description="Expenses per origin (family member or joint account).",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('analytics')])
def spending_by_origin(request):
    query_serializer = AnalyticsFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    data = AnalyticsQueries.spending_by_origin(
        date_from=params.get('date_from'),
        date_to=params.get('date_to'),
        bank=params.get('bank'),
    )
    return Response(data)


@extend_schema(
    parameters=[AnalyticsFilterSerializer],
    responses={
        200: MajorCategorySpendingSerializer(many=True),
        400: ErrorSerializer,
    },
    description="Expenses per major category.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('analytics')])
def major_category_breakdown(request):
    query_serializer = AnalyticsFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = AnalyticsQueries.major_category_breakdown(**query_serializer.validated_data)
    return Response(data)


@extend_schema(
    parameters=[TrendQuerySerializer],
    responses={
        200: TrendPointSerializer(many=True),
        400: ErrorSerializer,
    },
    description="Income, expenses and net per month, oldest first.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('analytics')])
def monthly_trend(request):
    query_serializer = TrendQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = AnalyticsQueries.monthly_trend(**query_serializer.validated_data)
    return Response(data)


@extend_schema(
    parameters=[ForecastQuerySerializer],
    responses={
        200: ForecastResponseSerializer,
        400: ErrorSerializer,
    },
    description="Project income, expenses or cash flow from the last six months.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('analytics')])
def forecast(request):
    """Forecast - thin HTTP handler."""
    query_serializer = ForecastQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        data = AnalyticsQueries.forecast(
            months=params['months'],
            kind=params['type'],
            scenario=params['scenario'],
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(data)
