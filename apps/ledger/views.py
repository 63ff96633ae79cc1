from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import HasFeatureAccess, feature_required
from .models import Origin, Bank, Category
from .serializers import (
    TransactionFilterSerializer,
    CategoryFilterSerializer,
    TransactionInputSerializer,
    ValidateTransactionSerializer,
    BulkCreateSerializer,
    BulkUpdateSerializer,
    BulkDeleteSerializer,
    BulkResultSerializer,
    TransactionSerializer,
    TransactionListSerializer,
    OriginSerializer,
    BankSerializer,
    CategorySerializer,
)
from .services import (
    search_transactions,
    get_transaction_by_id,
    create_transaction,
    update_transaction,
    delete_transaction,
    validate_transaction,
    bulk_create_transactions,
    bulk_update_transactions,
    bulk_delete_transactions,
    category_hierarchy,
    TransactionNotFoundError,
    InvalidTransactionError,
    BulkOperationError,
)


UUID_PATTERN = r'[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}'


# Response serializers for API documentation
class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class TransactionPagination(PageNumberPagination):
    """Custom pagination for transactions."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class TransactionViewSet(viewsets.ViewSet):
    """
    ViewSet for the family ledger.

    list: Filtered, sorted, paginated transactions
    create: Record a transaction
    retrieve: Get a transaction
    update / partial_update: Edit a transaction (month/year follow the date)
    destroy: Delete a transaction
    """

    permission_classes = [IsAuthenticated, HasFeatureAccess]
    required_feature = 'transactions'
    lookup_value_regex = UUID_PATTERN

    @extend_schema(
        parameters=[TransactionFilterSerializer],
        responses={200: TransactionListSerializer(many=True)},
        tags=['transactions'],
    )
    def list(self, request):
        """List transactions using validated query parameters."""
        filter_serializer = TransactionFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        queryset = search_transactions(**filter_serializer.validated_data)

        paginator = TransactionPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = TransactionListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        request=TransactionInputSerializer,
        responses={201: TransactionSerializer, 400: ErrorResponseSerializer},
        tags=['transactions'],
    )
    def create(self, request):
        serializer = TransactionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            txn = create_transaction(created_by=request.user, **serializer.validated_data)
        except InvalidTransactionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={200: TransactionSerializer, 404: ErrorResponseSerializer},
        tags=['transactions'],
    )
    def retrieve(self, request, pk=None):
        try:
            txn = get_transaction_by_id(pk)
        except TransactionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(TransactionSerializer(txn).data)

    def _update(self, request, pk, partial):
        try:
            instance = get_transaction_by_id(pk)
        except TransactionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        serializer = TransactionInputSerializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        try:
            txn = update_transaction(
                transaction_id=pk,
                data=serializer.validated_data,
                user=request.user,
            )
        except TransactionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransactionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(txn).data)

    @extend_schema(
        request=TransactionInputSerializer,
        responses={200: TransactionSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['transactions'],
    )
    def update(self, request, pk=None):
        return self._update(request, pk, partial=False)

    @extend_schema(
        request=TransactionInputSerializer,
        responses={200: TransactionSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['transactions'],
    )
    def partial_update(self, request, pk=None):
        return self._update(request, pk, partial=True)

    @extend_schema(
        responses={204: None, 404: ErrorResponseSerializer},
        tags=['transactions'],
    )
    def destroy(self, request, pk=None):
        try:
            delete_transaction(transaction_id=pk, user=request.user)
        except TransactionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=ValidateTransactionSerializer,
        responses={200: TransactionSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Mark a transaction as reviewed, optionally correcting its category.",
        tags=['transactions'],
    )
    @action(detail=True, methods=['post'])
    def validate(self, request, pk=None):
        """
        POST /api/transactions/{id}/validate/
        Body: {"category": "<uuid>"} (optional)
        """
        serializer = ValidateTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            txn = validate_transaction(
                transaction_id=pk,
                category=serializer.validated_data.get('category'),
                user=request.user,
            )
        except TransactionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransactionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(txn).data)

    @extend_schema(
        request=BulkCreateSerializer,
        responses={201: BulkResultSerializer, 400: ErrorResponseSerializer},
        tags=['transactions'],
    )
    @action(detail=False, methods=['post'], url_path='bulk-create')
    def bulk_create(self, request):
        serializer = BulkCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            created = bulk_create_transactions(
                items=serializer.validated_data['transactions'],
                created_by=request.user,
            )
        except (InvalidTransactionError, BulkOperationError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({'count': len(created)}, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=BulkUpdateSerializer,
        responses={200: BulkResultSerializer, 400: ErrorResponseSerializer},
        tags=['transactions'],
    )
    @action(detail=False, methods=['post'], url_path='bulk-update')
    def bulk_update(self, request):
        serializer = BulkUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            count = bulk_update_transactions(
                ids=serializer.validated_data['ids'],
                updates=serializer.validated_data['updates'],
                user=request.user,
            )
        except (InvalidTransactionError, BulkOperationError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({'count': count})

    @extend_schema(
        request=BulkDeleteSerializer,
        responses={200: BulkResultSerializer, 400: ErrorResponseSerializer},
        tags=['transactions'],
    )
    @action(detail=False, methods=['post'], url_path='bulk-delete')
    def bulk_delete(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            count = bulk_delete_transactions(
                ids=serializer.validated_data['ids'],
                user=request.user,
            )
        except BulkOperationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({'count': count})


# =============================================================================
# Reference data
# =============================================================================

@extend_schema(
    methods=['GET'],
    responses={200: OriginSerializer(many=True)},
    tags=['reference'],
)
@extend_schema(
    methods=['POST'],
    request=OriginSerializer,
    responses={201: OriginSerializer},
    tags=['reference'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def origin_list(request):
    """List origins or add a new one."""
    if request.method == 'POST':
        serializer = OriginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        origin = serializer.save()
        return Response(OriginSerializer(origin).data, status=status.HTTP_201_CREATED)

    return Response(OriginSerializer(Origin.objects.all(), many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: BankSerializer(many=True)},
    tags=['reference'],
)
@extend_schema(
    methods=['POST'],
    request=BankSerializer,
    responses={201: BankSerializer},
    tags=['reference'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def bank_list(request):
    """List banks or add a new one."""
    if request.method == 'POST':
        serializer = BankSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        bank = serializer.save()
        return Response(BankSerializer(bank).data, status=status.HTTP_201_CREATED)

    return Response(BankSerializer(Bank.objects.all(), many=True).data)


@extend_schema(
    parameters=[CategoryFilterSerializer],
    responses={200: CategorySerializer(many=True)},
    tags=['reference'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def category_list(request):
    """List categories, optionally by flow and major category."""
    filter_serializer = CategoryFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    queryset = Category.objects.filter(**filter_serializer.validated_data)
    return Response(CategorySerializer(queryset, many=True).data)


@extend_schema(
    parameters=[
        OpenApiParameter('flow', OpenApiTypes.STR, description='ENTRADA or SAIDA'),
    ],
    responses={200: OpenApiTypes.OBJECT},
    description="Categories grouped by flow and major category.",
    tags=['reference'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('transactions')])
def category_tree(request):
    filter_serializer = CategoryFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    return Response(category_hierarchy(flow=filter_serializer.validated_data.get('flow')))
