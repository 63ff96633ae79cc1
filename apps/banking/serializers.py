from rest_framework import serializers

from .models import BankConnection


# =============================================================================
# Input Serializers
# =============================================================================

class InstitutionQuerySerializer(serializers.Serializer):
    country = serializers.RegexField(r'^[A-Za-z]{2}$', required=False, default='PT')

    def validate_country(self, value):
        return value.upper()


class CreateConnectionSerializer(serializers.Serializer):
    institution_id = serializers.CharField(max_length=100)
    redirect_url = serializers.URLField(required=False)


class CallbackQuerySerializer(serializers.Serializer):
    """GoCardless redirects back with ?ref=<reference> (and ?error=... on failure)."""

    ref = serializers.CharField(max_length=100)
    error = serializers.CharField(required=False)
    details = serializers.CharField(required=False)


class SyncRequestSerializer(serializers.Serializer):
    """
    Body of a manual sync.

    Fields:
        account_id (str): Sync one account; omit to sync every linked account
        date_from / date_to (date): Booking date window
    """

    account_id = serializers.CharField(max_length=100, required=False)
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


class SchedulerQuerySerializer(serializers.Serializer):
    stats = serializers.BooleanField(required=False, default=False)
    days = serializers.IntegerField(min_value=1, max_value=365, required=False, default=30)


class SchedulerActionSerializer(serializers.Serializer):
    """
    Control the sync scheduler.

    Examples:
        {"action": "stop", "job_id": "daily-sync"}
        {"action": "manual-sync"}
    """

    ACTIONS = ['start', 'stop', 'trigger', 'manual-sync']

    action = serializers.ChoiceField(choices=ACTIONS)
    job_id = serializers.CharField(max_length=100, required=False)

    def validate(self, attrs):
        if attrs['action'] != 'manual-sync' and not attrs.get('job_id'):
            raise serializers.ValidationError({
                'job_id': f"job_id is required for '{attrs['action']}'"
            })
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class BankConnectionSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_linked = serializers.BooleanField(read_only=True)

    class Meta:
        model = BankConnection
        fields = [
            'id',
            'requisition_id',
            'institution_id',
            'institution_name',
            'reference',
            'status',
            'status_display',
            'is_linked',
            'link',
            'account_ids',
            'last_synced_at',
            'created_at',
        ]
        read_only_fields = fields


class LinkedAccountSerializer(serializers.Serializer):
    account_id = serializers.CharField()
    institution_name = serializers.CharField(source='connection.institution_name')
    connection_id = serializers.UUIDField(source='connection.id')
    last_synced_at = serializers.DateTimeField(source='connection.last_synced_at', allow_null=True)


class AccountSyncResultSerializer(serializers.Serializer):
    account_id = serializers.CharField()
    processed = serializers.IntegerField()
    created = serializers.IntegerField()
    updated = serializers.IntegerField()
    errors = serializers.ListField(child=serializers.CharField())


class SyncResultSerializer(serializers.Serializer):
    accounts_processed = serializers.IntegerField()
    total_transactions = serializers.IntegerField()
    created = serializers.IntegerField()
    updated = serializers.IntegerField()
    errors = serializers.ListField(child=serializers.CharField())


class SyncJobSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    schedule = serializers.CharField()
    is_active = serializers.BooleanField()
    lookback_days = serializers.IntegerField(allow_null=True)
    last_run = serializers.DateTimeField(allow_null=True)
    next_run = serializers.DateTimeField(allow_null=True)
    last_result = serializers.DictField(allow_null=True)


class SyncErrorSerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField()
    error = serializers.CharField(allow_null=True)
    job_id = serializers.CharField(allow_null=True)


class SyncStatisticsSerializer(serializers.Serializer):
    period = serializers.DictField()
    total_syncs = serializers.IntegerField()
    successful_syncs = serializers.IntegerField()
    failed_syncs = serializers.IntegerField()
    success_rate = serializers.FloatField()
    total_transactions_created = serializers.IntegerField()
    total_transactions_updated = serializers.IntegerField()
    last_sync = serializers.DateTimeField(allow_null=True)
    recent_errors = SyncErrorSerializer(many=True)
