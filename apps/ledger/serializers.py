from decimal import Decimal

from rest_framework import serializers

from .models import (
    Origin,
    Bank,
    Category,
    Transaction,
    TransactionFlow,
    MajorCategory,
    Month,
    MIN_YEAR,
    MAX_YEAR,
)
from .services import SORT_FIELDS


# =============================================================================
# Input Serializers
# =============================================================================

class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction filtering.

    Query Parameters:
        date_from (date): Transactions on or after this date
        date_to (date): Transactions on or before this date
        origin / bank / category (UUID): Reference filters
        flow (str): ENTRADA or SAIDA
        major_category (str): Major category of the transaction's category
        min_amount / max_amount (decimal): Bounds on incomes or outgoings
        description (str): Case-insensitive substring
        month (str), year (int): Ledger period
        is_validated / is_ai_generated (bool)
        sort_by (str), sort_order (asc|desc)
    """

    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    origin = serializers.UUIDField(required=False)
    bank = serializers.UUIDField(required=False)
    category = serializers.UUIDField(required=False)
    flow = serializers.ChoiceField(choices=TransactionFlow.choices, required=False)
    major_category = serializers.ChoiceField(choices=MajorCategory.choices, required=False)
    min_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    max_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    description = serializers.CharField(max_length=500, required=False)
    month = serializers.ChoiceField(choices=Month.choices, required=False)
    year = serializers.IntegerField(min_value=MIN_YEAR, max_value=MAX_YEAR, required=False)
    is_validated = serializers.BooleanField(required=False, allow_null=True, default=None)
    is_ai_generated = serializers.BooleanField(required=False, allow_null=True, default=None)
    sort_by = serializers.ChoiceField(choices=list(SORT_FIELDS), required=False)
    sort_order = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')

    def validate(self, attrs):
        """Validate date and amount ranges."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        min_amount = attrs.get('min_amount')
        max_amount = attrs.get('max_amount')

        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise serializers.ValidationError({
                'max_amount': 'Maximum amount must be greater than minimum amount'
            })

        return attrs


class CategoryFilterSerializer(serializers.Serializer):
    flow = serializers.ChoiceField(choices=TransactionFlow.choices, required=False)
    major_category = serializers.ChoiceField(choices=MajorCategory.choices, required=False)


class TransactionInputSerializer(serializers.Serializer):
    """
    Validate transaction create/update payloads.

    Fields:
        date, origin, bank, flow, category, description (required on create)
        incomes (decimal): Required for ENTRADA
        outgoings (decimal): Required for SAIDA
        notes (str): Optional free text
    """

    date = serializers.DateField()
    origin = serializers.PrimaryKeyRelatedField(queryset=Origin.objects.all())
    bank = serializers.PrimaryKeyRelatedField(queryset=Bank.objects.all())
    flow = serializers.ChoiceField(choices=TransactionFlow.choices)
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all())
    description = serializers.CharField(min_length=1, max_length=500)
    incomes = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True
    )
    outgoings = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True
    )
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)

    def validate_date(self, value):
        if not MIN_YEAR <= value.year <= MAX_YEAR:
            raise serializers.ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
        return value

    def validate(self, attrs):
        """Check the amount side against the flow and the category's flow."""
        instance = getattr(self, 'instance', None)

        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(instance, field, None) if instance else None

        flow = current('flow')
        category = current('category')

        if flow == TransactionFlow.INCOME and not current('incomes'):
            raise serializers.ValidationError({'incomes': 'Income transactions require an incomes amount'})
        if flow == TransactionFlow.EXPENSE and not current('outgoings'):
            raise serializers.ValidationError({'outgoings': 'Expense transactions require an outgoings amount'})

        if category is not None and flow and category.flow != flow:
            raise serializers.ValidationError({'category': 'Category flow does not match transaction flow'})

        return attrs


class ValidateTransactionSerializer(serializers.Serializer):
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False)


class BulkCreateSerializer(serializers.Serializer):
    transactions = TransactionInputSerializer(many=True, allow_empty=False)


class BulkUpdateSerializer(serializers.Serializer):
    """
    Same updates applied to every listed transaction.

    Example:
        {"ids": ["..."], "updates": {"category": "<uuid>", "is_validated": true}}
    """

    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    updates = serializers.DictField(allow_empty=False)

    def validate_updates(self, value):
        partial = TransactionInputSerializer(data=value, partial=True)
        partial.is_valid(raise_exception=True)

        validated = dict(partial.validated_data)
        if 'is_validated' in value:
            validated['is_validated'] = serializers.BooleanField().to_internal_value(value['is_validated'])
        return validated


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class BulkResultSerializer(serializers.Serializer):
    count = serializers.IntegerField()


# =============================================================================
# Output Serializers
# =============================================================================

class OriginSerializer(serializers.ModelSerializer):

    class Meta:
        model = Origin
        fields = ['id', 'name', 'created_at']
        read_only_fields = ['id', 'created_at']


class BankSerializer(serializers.ModelSerializer):

    class Meta:
        model = Bank
        fields = ['id', 'name', 'created_at']
        read_only_fields = ['id', 'created_at']


class CategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = Category
        fields = ['id', 'flow', 'major_category', 'category', 'sub_category']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """Full transaction with nested reference data."""

    origin = OriginSerializer(read_only=True)
    bank = BankSerializer(read_only=True)
    category = CategorySerializer(read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'date',
            'origin',
            'bank',
            'flow',
            'category',
            'description',
            'incomes',
            'outgoings',
            'amount',
            'notes',
            'month',
            'year',
            'external_id',
            'ai_confidence',
            'is_ai_generated',
            'is_validated',
            'created_by_email',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    origin = serializers.CharField(source='origin.name', read_only=True)
    bank = serializers.CharField(source='bank.name', read_only=True)
    category = serializers.CharField(source='category.category', read_only=True)
    sub_category = serializers.CharField(source='category.sub_category', read_only=True)
    major_category = serializers.CharField(source='category.major_category', read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'date',
            'origin',
            'bank',
            'flow',
            'major_category',
            'category',
            'sub_category',
            'description',
            'incomes',
            'outgoings',
            'month',
            'year',
            'ai_confidence',
            'is_ai_generated',
            'is_validated',
        ]
        read_only_fields = fields
