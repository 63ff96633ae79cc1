from decimal import Decimal

from rest_framework import serializers

from apps.ledger.models import Category, Month, TransactionFlow, MIN_YEAR, MAX_YEAR
from apps.ledger.serializers import CategorySerializer

from .models import Budget, Goal, GoalType, GoalStatus, GoalPeriod, GoalPriority
from .services import calculate_progress


# =============================================================================
# Budget Serializers
# =============================================================================

class BudgetPeriodSerializer(serializers.Serializer):
    """
    Query parameters selecting a budget period.

    Query Parameters:
        year (int): Defaults to the current year
        month (str): Portuguese month name; omit for the whole year
    """

    year = serializers.IntegerField(min_value=MIN_YEAR, max_value=MAX_YEAR, required=False)
    month = serializers.ChoiceField(choices=Month.choices, required=False)


class BudgetInputSerializer(serializers.Serializer):
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.filter(flow=TransactionFlow.EXPENSE)
    )
    year = serializers.IntegerField(min_value=MIN_YEAR, max_value=MAX_YEAR)
    month = serializers.ChoiceField(choices=Month.choices, required=False, allow_null=True)
    amount_limit = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class BudgetSerializer(serializers.ModelSerializer):
    category = CategorySerializer(read_only=True)

    class Meta:
        model = Budget
        fields = ['id', 'category', 'year', 'month', 'amount_limit', 'created_at', 'updated_at']
        read_only_fields = fields


class BudgetStatusSerializer(serializers.Serializer):
    budget = BudgetSerializer()
    spent = serializers.DecimalField(max_digits=12, decimal_places=2)
    remaining = serializers.DecimalField(max_digits=12, decimal_places=2)
    percent_used = serializers.DecimalField(max_digits=8, decimal_places=2)
    status = serializers.CharField()


class BudgetOverviewSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.CharField(allow_null=True)
    budgets = BudgetStatusSerializer(many=True)
    total_limit = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_spent = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_remaining = serializers.DecimalField(max_digits=14, decimal_places=2)
    percent_used = serializers.DecimalField(max_digits=8, decimal_places=2)
    counts = serializers.DictField(child=serializers.IntegerField())


# =============================================================================
# Goal Serializers
# =============================================================================

class GoalFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=GoalStatus.choices, required=False)
    goal_type = serializers.ChoiceField(choices=GoalType.choices, required=False)


class GoalInputSerializer(serializers.Serializer):
    """
    Validate goal create/update payloads.

    target_date must fall after start_date, also on partial updates.
    """

    title = serializers.CharField(min_length=1, max_length=100)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    goal_type = serializers.ChoiceField(choices=GoalType.choices)
    status = serializers.ChoiceField(choices=GoalStatus.choices, required=False)
    period = serializers.ChoiceField(choices=GoalPeriod.choices, required=False)
    target_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    current_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.00'), required=False
    )
    start_date = serializers.DateField()
    target_date = serializers.DateField()
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    priority = serializers.ChoiceField(choices=GoalPriority.choices, required=False)
    is_recurring = serializers.BooleanField(required=False)
    notifications = serializers.BooleanField(required=False)

    def validate(self, attrs):
        instance = getattr(self, 'instance', None)
        start_date = attrs.get('start_date', getattr(instance, 'start_date', None))
        target_date = attrs.get('target_date', getattr(instance, 'target_date', None))

        if start_date and target_date and target_date <= start_date:
            raise serializers.ValidationError({
                'target_date': 'Target date must be after start date'
            })

        return attrs


class GoalProgressSerializer(serializers.Serializer):
    goal_id = serializers.UUIDField()
    progress = serializers.FloatField()
    amount_to_go = serializers.DecimalField(max_digits=12, decimal_places=2)
    days_remaining = serializers.IntegerField()
    average_required = serializers.DecimalField(max_digits=12, decimal_places=2)
    velocity = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_on_track = serializers.BooleanField()
    projected_completion = serializers.DateField(allow_null=True)


class GoalProgressUpdateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))


class GoalInsightSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=['achievement', 'warning', 'milestone', 'suggestion'])
    title = serializers.CharField()
    description = serializers.CharField()
    goal_id = serializers.UUIDField()
    actionable = serializers.BooleanField()
    action = serializers.CharField(allow_null=True)


class GoalSerializer(serializers.ModelSerializer):
    """Goal with its current progress snapshot."""

    category = CategorySerializer(read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Goal
        fields = [
            'id',
            'title',
            'description',
            'goal_type',
            'status',
            'period',
            'target_amount',
            'current_amount',
            'start_date',
            'target_date',
            'category',
            'priority',
            'is_recurring',
            'notifications',
            'progress',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_progress(self, obj) -> dict:
        return GoalProgressSerializer(calculate_progress(obj)).data
