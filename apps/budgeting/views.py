from django.utils import timezone
from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import HasFeatureAccess
from .models import Budget
from .serializers import (
    BudgetPeriodSerializer,
    BudgetInputSerializer,
    BudgetSerializer,
    BudgetStatusSerializer,
    BudgetOverviewSerializer,
    GoalFilterSerializer,
    GoalInputSerializer,
    GoalSerializer,
    GoalProgressSerializer,
    GoalProgressUpdateSerializer,
    GoalInsightSerializer,
)
from .services import (
    get_budget_by_id,
    budget_status,
    budget_overview,
    create_budget,
    update_budget,
    delete_budget,
    list_goals,
    get_goal,
    create_goal,
    update_goal,
    delete_goal,
    calculate_progress,
    goal_insights,
    update_goal_progress,
    BudgetNotFoundError,
    DuplicateBudgetError,
    InvalidBudgetError,
    GoalNotFoundError,
    InvalidGoalError,
)


UUID_PATTERN = r'[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}'

class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class BudgetViewSet(viewsets.ViewSet):
    """
    Family budgets per expense category.

    list: Budgets of a period (year, optional month)
    create: Set a budget
    retrieve: Budget with its spending status
    partial_update / destroy: Edit or remove a budget
    overview: Status of every budget for a period
    """

    permission_classes = [IsAuthenticated, HasFeatureAccess]
    required_feature = 'budgeting'
    lookup_value_regex = UUID_PATTERN

    def _period(self, request):
        serializer = BudgetPeriodSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        year = serializer.validated_data.get('year', timezone.localdate().year)
        return year, serializer.validated_data.get('month')

    @extend_schema(
        parameters=[BudgetPeriodSerializer],
        responses={200: BudgetSerializer(many=True)},
        tags=['budgets'],
    )
    def list(self, request):
        year, month = self._period(request)
        queryset = Budget.objects.select_related('category').filter(year=year)
        if month:
            queryset = queryset.filter(month=month)
        return Response(BudgetSerializer(queryset, many=True).data)

    @extend_schema(
        request=BudgetInputSerializer,
        responses={201: BudgetSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=['budgets'],
    )
    def create(self, request):
        serializer = BudgetInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            budget = create_budget(created_by=request.user, **serializer.validated_data)
        except DuplicateBudgetError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except InvalidBudgetError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BudgetSerializer(budget).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={200: BudgetStatusSerializer, 404: ErrorResponseSerializer},
        tags=['budgets'],
    )
    def retrieve(self, request, pk=None):
        try:
            budget = get_budget_by_id(pk)
        except BudgetNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(BudgetStatusSerializer(budget_status(budget)).data)

    @extend_schema(
        request=BudgetInputSerializer,
        responses={
            200: BudgetSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        tags=['budgets'],
    )
    def partial_update(self, request, pk=None):
        serializer = BudgetInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            budget = update_budget(budget_id=pk, data=serializer.validated_data)
        except BudgetNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except DuplicateBudgetError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except InvalidBudgetError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BudgetSerializer(budget).data)

    @extend_schema(
        responses={204: None, 404: ErrorResponseSerializer},
        tags=['budgets'],
    )
    def destroy(self, request, pk=None):
        try:
            delete_budget(budget_id=pk)
        except BudgetNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        parameters=[BudgetPeriodSerializer],
        responses={200: BudgetOverviewSerializer},
        description="Spent, remaining and status of every budget in a period.",
        tags=['budgets'],
    )
    @action(detail=False, methods=['get'])
    def overview(self, request):
        """
        GET /api/budgeting/budgets/overview/?year=2024&month=MARCO
        """
        year, month = self._period(request)
        return Response(BudgetOverviewSerializer(budget_overview(year=year, month=month)).data)


class GoalViewSet(viewsets.ViewSet):
    """
    Personal financial goals.

    list: Goals by priority then target date
    create / retrieve / partial_update / destroy
    progress: GET snapshot, POST new saved amount
    insights: Achievements, milestones, warnings and suggestions
    """

    permission_classes = [IsAuthenticated, HasFeatureAccess]
    required_feature = 'goals'
    lookup_value_regex = UUID_PATTERN

    @extend_schema(
        parameters=[GoalFilterSerializer],
        responses={200: GoalSerializer(many=True)},
        tags=['goals'],
    )
    def list(self, request):
        filter_serializer = GoalFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        goals = list_goals(owner=request.user, **filter_serializer.validated_data)
        return Response(GoalSerializer(goals, many=True).data)

    @extend_schema(
        request=GoalInputSerializer,
        responses={201: GoalSerializer, 400: ErrorResponseSerializer},
        tags=['goals'],
    )
    def create(self, request):
        serializer = GoalInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            goal = create_goal(owner=request.user, **serializer.validated_data)
        except InvalidGoalError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(GoalSerializer(goal).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={200: GoalSerializer, 404: ErrorResponseSerializer},
        tags=['goals'],
    )
    def retrieve(self, request, pk=None):
        try:
            goal = get_goal(goal_id=pk, owner=request.user)
        except GoalNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(GoalSerializer(goal).data)

    @extend_schema(
        request=GoalInputSerializer,
        responses={200: GoalSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['goals'],
    )
    def partial_update(self, request, pk=None):
        try:
            instance = get_goal(goal_id=pk, owner=request.user)
        except GoalNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        serializer = GoalInputSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            goal = update_goal(goal_id=pk, owner=request.user, data=serializer.validated_data)
        except GoalNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidGoalError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(GoalSerializer(goal).data)

    @extend_schema(
        responses={204: None, 404: ErrorResponseSerializer},
        tags=['goals'],
    )
    def destroy(self, request, pk=None):
        try:
            delete_goal(goal_id=pk, owner=request.user)
        except GoalNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        methods=['GET'],
        responses={200: GoalProgressSerializer, 404: ErrorResponseSerializer},
        tags=['goals'],
    )
    @extend_schema(
        methods=['POST'],
        request=GoalProgressUpdateSerializer,
        responses={200: GoalSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Set the saved amount; an active goal reaching its target is completed.",
        tags=['goals'],
    )
    @action(detail=True, methods=['get', 'post'])
    def progress(self, request, pk=None):
        if request.method == 'POST':
            serializer = GoalProgressUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            try:
                goal = update_goal_progress(
                    goal_id=pk,
                    owner=request.user,
                    amount=serializer.validated_data['amount'],
                )
            except GoalNotFoundError as e:
                return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
            except InvalidGoalError as e:
                return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

            return Response(GoalSerializer(goal).data)

        try:
            goal = get_goal(goal_id=pk, owner=request.user)
        except GoalNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(GoalProgressSerializer(calculate_progress(goal)).data)

    @extend_schema(
        responses={200: GoalInsightSerializer(many=True)},
        tags=['goals'],
    )
    @action(detail=False, methods=['get'])
    def insights(self, request):
        return Response(GoalInsightSerializer(goal_insights(owner=request.user), many=True).data)
