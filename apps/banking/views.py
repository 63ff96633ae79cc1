import logging

from django.utils import timezone
from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import HasFeatureAccess, IsAdminRole, feature_required
from .exceptions import (
    BankingNotConfiguredError,
    BankingProviderError,
    ConnectionNotFoundError,
    SyncFailedError,
    SyncJobNotFoundError,
)
from .serializers import (
    InstitutionQuerySerializer,
    CreateConnectionSerializer,
    CallbackQuerySerializer,
    SyncRequestSerializer,
    SchedulerQuerySerializer,
    SchedulerActionSerializer,
    BankConnectionSerializer,
    LinkedAccountSerializer,
    AccountSyncResultSerializer,
    SyncResultSerializer,
    SyncJobSerializer,
    SyncStatisticsSerializer,
)
from .services import (
    list_institutions,
    create_connection,
    list_connections,
    get_connection,
    refresh_connection,
    handle_callback,
    delete_connection,
    list_linked_accounts,
    sync_account_transactions,
    sync_all_accounts,
    account_summary,
    get_scheduler,
    get_sync_statistics,
)

logger = logging.getLogger(__name__)


UUID_PATTERN = r'[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}'

class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


def provider_error_response(e):
    """503 when GoCardless is not configured, 502 when it fails."""
    if isinstance(e, BankingNotConfiguredError):
        return Response(
            {'error': str(e), 'code': 'MISSING_CREDENTIALS'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)


# =============================================================================
# Institutions and connections
# =============================================================================

@extend_schema(
    parameters=[InstitutionQuerySerializer],
    responses={200: OpenApiTypes.OBJECT, 502: ErrorResponseSerializer, 503: ErrorResponseSerializer},
    description="Banks available for a country (ISO 3166 alpha-2, default PT).",
    tags=['banking'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def institution_list(request):
    serializer = InstitutionQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    try:
        institutions = list_institutions(country=serializer.validated_data['country'])
    except (BankingNotConfiguredError, BankingProviderError) as e:
        return provider_error_response(e)

    return Response(institutions)


class BankConnectionViewSet(viewsets.ViewSet):
    """
    The requesting member's bank connections.

    list / retrieve: Stored connections
    create: Start a GoCardless requisition; follow the returned link
    destroy: Revoke the requisition
    refresh: Pull status and accounts from GoCardless
    """

    permission_classes = [IsAuthenticated, HasFeatureAccess]
    required_feature = 'transactions'
    lookup_value_regex = UUID_PATTERN

    @extend_schema(responses={200: BankConnectionSerializer(many=True)}, tags=['banking'])
    def list(self, request):
        return Response(BankConnectionSerializer(list_connections(user=request.user), many=True).data)

    @extend_schema(
        request=CreateConnectionSerializer,
        responses={201: BankConnectionSerializer, 502: ErrorResponseSerializer, 503: ErrorResponseSerializer},
        tags=['banking'],
    )
    def create(self, request):
        serializer = CreateConnectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            connection = create_connection(user=request.user, **serializer.validated_data)
        except (BankingNotConfiguredError, BankingProviderError) as e:
            return provider_error_response(e)

        return Response(BankConnectionSerializer(connection).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: BankConnectionSerializer, 404: ErrorResponseSerializer}, tags=['banking'])
    def retrieve(self, request, pk=None):
        try:
            connection = get_connection(connection_id=pk, user=request.user)
        except ConnectionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(BankConnectionSerializer(connection).data)

    @extend_schema(
        responses={204: None, 404: ErrorResponseSerializer, 502: ErrorResponseSerializer},
        tags=['banking'],
    )
    def destroy(self, request, pk=None):
        try:
            delete_connection(connection_id=pk, user=request.user)
        except ConnectionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (BankingNotConfiguredError, BankingProviderError) as e:
            return provider_error_response(e)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=None,
        responses={200: BankConnectionSerializer, 404: ErrorResponseSerializer, 502: ErrorResponseSerializer},
        tags=['banking'],
    )
    @action(detail=True, methods=['post'])
    def refresh(self, request, pk=None):
        try:
            connection = refresh_connection(
                connection=get_connection(connection_id=pk, user=request.user)
            )
        except ConnectionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (BankingNotConfiguredError, BankingProviderError) as e:
            return provider_error_response(e)

        return Response(BankConnectionSerializer(connection).data)


@extend_schema(
    parameters=[CallbackQuerySerializer],
    responses={200: BankConnectionSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Redirect target after bank consent. Updates the connection status.",
    tags=['banking'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def callback(request):
    serializer = CallbackQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if data.get('error'):
        logger.warning("Bank consent failed for %s: %s %s", data['ref'], data['error'], data.get('details', ''))

    try:
        connection = handle_callback(reference=data['ref'])
    except ConnectionNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except (BankingNotConfiguredError, BankingProviderError) as e:
        return provider_error_response(e)

    return Response(BankConnectionSerializer(connection).data)


# =============================================================================
# Accounts and sync
# =============================================================================

@extend_schema(responses={200: LinkedAccountSerializer(many=True)}, tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def account_list(request):
    """Accounts of every linked connection of the family."""
    return Response(LinkedAccountSerializer(list_linked_accounts(), many=True).data)


@extend_schema(
    responses={200: OpenApiTypes.OBJECT, 502: ErrorResponseSerializer, 503: ErrorResponseSerializer},
    description="Account metadata, balances, ten most recent booked transactions and their count.",
    tags=['banking'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def account_detail(request, account_id):
    try:
        summary = account_summary(account_id=account_id)
    except (BankingNotConfiguredError, BankingProviderError) as e:
        return provider_error_response(e)

    return Response(summary)


@extend_schema(
    request=SyncRequestSerializer,
    responses={200: SyncResultSerializer},
    description="Import booked transactions for one account or for every linked account.",
    tags=['banking'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def sync(request):
    serializer = SyncRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    window = {'date_from': data.get('date_from'), 'date_to': data.get('date_to')}

    if data.get('account_id'):
        connection = next(
            (entry['connection'] for entry in list_linked_accounts() if entry['account_id'] == data['account_id']),
            None,
        )
        result = sync_account_transactions(account_id=data['account_id'], connection=connection, **window)
        return Response(AccountSyncResultSerializer(result).data)

    return Response(SyncResultSerializer(sync_all_accounts(**window)).data)


# =============================================================================
# Scheduler (admin)
# =============================================================================

@extend_schema(
    methods=['GET'],
    parameters=[SchedulerQuerySerializer],
    responses={200: OpenApiTypes.OBJECT},
    description="Jobs with 7-day statistics, or only statistics with ?stats=true&days=N.",
    tags=['banking-scheduler'],
)
@extend_schema(
    methods=['POST'],
    request=SchedulerActionSerializer,
    responses={200: OpenApiTypes.OBJECT, 404: ErrorResponseSerializer, 502: ErrorResponseSerializer},
    tags=['banking-scheduler'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def scheduler(request):
    sync_scheduler = get_scheduler()

    if request.method == 'GET':
        query = SchedulerQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        if query.validated_data['stats']:
            statistics = get_sync_statistics(days=query.validated_data['days'])
            return Response({'statistics': SyncStatisticsSerializer(statistics).data})

        return Response({
            'jobs': SyncJobSerializer(sync_scheduler.get_all_jobs(), many=True).data,
            'statistics': SyncStatisticsSerializer(get_sync_statistics(days=7)).data,
            'running': sync_scheduler.running,
            'server_time': timezone.now(),
        })

    serializer = SchedulerActionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    action_name = serializer.validated_data['action']
    job_id = serializer.validated_data.get('job_id')

    try:
        if action_name == 'start':
            sync_scheduler.start_job(job_id)
            return Response({'message': f"Job {job_id} started successfully"})
        if action_name == 'stop':
            sync_scheduler.stop_job(job_id)
            return Response({'message': f"Job {job_id} stopped successfully"})
        if action_name == 'trigger':
            result = sync_scheduler.trigger_manual_sync(job_id)
            return Response({'message': f"Job {job_id} triggered successfully", 'result': result})

        result = sync_scheduler.trigger_manual_sync(job_id)
        return Response({'message': 'Manual sync completed successfully', 'result': result})
    except SyncJobNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except SyncFailedError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
