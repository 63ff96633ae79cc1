
from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsAdminRole, feature_required
from .exceptions import AssistantNotConfiguredError, AssistantProviderError
from .serializers import (
    CategorizeInputSerializer,
    BulkCategorizeInputSerializer,
    PeriodQuerySerializer,
    ChatInputSerializer,
    StatsQuerySerializer,
    ResetLearningSerializer,
    ResetResultSerializer,
    CategorizationSerializer,
    ChatResponseSerializer,
    InsightSerializer,
    CategorizationStatsSerializer,
    FeedbackInsightsSerializer,
)
from .services import (
    categorize_transaction,
    categorize_many,
    categorization_stats,
    feedback_insights,
    reset_learning,
    build_financial_context,
    process_financial_query,
    generate_insights,
)



class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    code = drf_serializers.CharField(required=False)


def gemini_error_response(e):
    if isinstance(e, AssistantNotConfiguredError):
        return Response(
            {'error': str(e), 'code': 'MISSING_API_KEY'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'error': str(e), 'code': 'GEMINI_ERROR'}, status=status.HTTP_502_BAD_GATEWAY)


# =============================================================================
# Categorization
# =============================================================================

@extend_schema(
    request=CategorizeInputSerializer,
    responses={200: CategorizationSerializer},
    description="Suggest a category from feedback patterns, history, keyword rules or Gemini.",
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def categorize(request):
    serializer = CategorizeInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = categorize_transaction(**serializer.validated_data)
    return Response(CategorizationSerializer(result).data)


@extend_schema(
    request=BulkCategorizeInputSerializer,
    responses={200: CategorizationSerializer(many=True)},
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def categorize_bulk(request):
    serializer = BulkCategorizeInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    results = categorize_many(serializer.validated_data['transactions'])
    return Response(CategorizationSerializer(results, many=True).data)


@extend_schema(
    parameters=[StatsQuerySerializer],
    responses={200: CategorizationStatsSerializer},
    tags=['assistant'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def stats(request):
    serializer = StatsQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    return Response(CategorizationStatsSerializer(
        categorization_stats(days=serializer.validated_data['days'])
    ).data)


@extend_schema(responses={200: FeedbackInsightsSerializer}, tags=['assistant'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def feedback(request):
    """What the categorizer learned from corrections."""
    return Response(FeedbackInsightsSerializer(feedback_insights()).data)


@extend_schema(
    request=ResetLearningSerializer,
    responses={200: ResetResultSerializer},
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def feedback_reset(request):
    serializer = ResetLearningSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    return Response(reset_learning(older_than_days=serializer.validated_data['older_than_days']))


# =============================================================================
# Financial chat
# =============================================================================

@extend_schema(
    request=ChatInputSerializer,
    responses={
        200: ChatResponseSerializer,
        502: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    description="Ask a question about the family's finances. Defaults to the current month.",
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def chat(request):
    serializer = ChatInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    context = build_financial_context(
        user=request.user,
        date_from=data.get('date_from'),
        date_to=data.get('date_to'),
    )

    try:
        answer = process_financial_query(query=data['query'], context=context)
    except (AssistantNotConfiguredError, AssistantProviderError) as e:
        return gemini_error_response(e)

    return Response(ChatResponseSerializer(answer).data)


@extend_schema(
    parameters=[PeriodQuerySerializer],
    responses={
        200: InsightSerializer(many=True),
        502: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    tags=['assistant'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('ai_assistant')])
def insights(request):
    serializer = PeriodQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    context = build_financial_context(user=request.user, **serializer.validated_data)

    try:
        results = generate_insights(context=context)
    except (AssistantNotConfiguredError, AssistantProviderError) as e:
        return gemini_error_response(e)

    return Response(InsightSerializer(results, many=True).data)
