from rest_framework import serializers

from apps.ledger.models import Category, TransactionFlow


# =============================================================================
# Input Serializers
# =============================================================================

class CategorizeInputSerializer(serializers.Serializer):
    """
    A transaction to categorize.

    flow defaults from the sign of amount: positive is ENTRADA, negative
    SAIDA. The amount is categorized as an absolute value.
    """

    description = serializers.CharField(max_length=500)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    merchant_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    flow = serializers.ChoiceField(choices=TransactionFlow.choices, required=False)

    def validate(self, attrs):
        if not attrs.get('flow'):
            attrs['flow'] = TransactionFlow.INCOME if attrs['amount'] >= 0 else TransactionFlow.EXPENSE
        attrs['amount'] = abs(attrs['amount'])
        attrs['merchant_name'] = attrs.get('merchant_name') or None
        return attrs


class BulkCategorizeInputSerializer(serializers.Serializer):
    MAX_TRANSACTIONS = 100

    transactions = CategorizeInputSerializer(many=True, allow_empty=False)

    def validate_transactions(self, value):
        if len(value) > self.MAX_TRANSACTIONS:
            raise serializers.ValidationError(
                f"At most {self.MAX_TRANSACTIONS} transactions per request"
            )
        return value


class PeriodQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


class ChatInputSerializer(PeriodQuerySerializer):
    query = serializers.CharField(max_length=2000, trim_whitespace=True)


class StatsQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, required=False, default=30)


class ResetLearningSerializer(serializers.Serializer):
    older_than_days = serializers.IntegerField(min_value=1, required=False, default=180)


# =============================================================================
# Output Serializers
# =============================================================================

class SuggestedCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'flow', 'major_category', 'category', 'sub_category']


class AlternativeSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    category = serializers.CharField()
    sub_category = serializers.CharField()
    confidence = serializers.FloatField()


class CategorizationSerializer(serializers.Serializer):
    category = SuggestedCategorySerializer()
    confidence = serializers.FloatField()
    reasoning = serializers.CharField()
    alternatives = AlternativeSerializer(many=True)
    source = serializers.CharField()


class ChatResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    type = serializers.CharField()
    data = serializers.DictField(allow_null=True)
    confidence = serializers.FloatField()
    sources = serializers.ListField(child=serializers.CharField())
    follow_up_questions = serializers.ListField(child=serializers.CharField())
    provider = serializers.CharField()
    processed_at = serializers.DateTimeField()


class InsightSerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    type = serializers.CharField()
    priority = serializers.CharField()
    recommendations = serializers.ListField(child=serializers.CharField())
    actionable = serializers.BooleanField()
    confidence = serializers.FloatField()


class CategorizationStatsSerializer(serializers.Serializer):
    period = serializers.DictField()
    total_transactions = serializers.IntegerField()
    ai_generated_transactions = serializers.IntegerField()
    validated_transactions = serializers.IntegerField()
    corrections = serializers.IntegerField()
    ai_accuracy = serializers.FloatField()
    validation_rate = serializers.FloatField()


class CorrectionSerializer(serializers.Serializer):
    correction_pattern = serializers.CharField()
    count = serializers.IntegerField()
    from_category = serializers.CharField()
    to_category = serializers.CharField()


class FeedbackInsightsSerializer(serializers.Serializer):
    total_patterns = serializers.IntegerField()
    trusted_patterns = serializers.IntegerField()
    high_confidence_patterns = serializers.IntegerField()
    recent_patterns = serializers.IntegerField()
    most_corrected_categories = CorrectionSerializer(many=True)


class ResetResultSerializer(serializers.Serializer):
    message = serializers.CharField()
    removed_patterns = serializers.IntegerField()
    remaining_patterns = serializers.IntegerField()
