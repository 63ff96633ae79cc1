from rest_framework import serializers

from .services import DataType, ExportType, ExportFormat


# =============================================================================
# Input Serializers
# =============================================================================

class UploadSerializer(serializers.Serializer):
    """A CSV or XLSX file and the kind of rows it holds."""

    file = serializers.FileField()
    type = serializers.ChoiceField(choices=DataType.choices)


class ExportQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ExportType.choices, default=ExportType.TRANSACTIONS)
    # 'format' is reserved by DRF for renderer selection
    file_format = serializers.ChoiceField(choices=ExportFormat.choices, default=ExportFormat.CSV)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    category = serializers.UUIDField(required=False)
    include_metadata = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class RowErrorSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    column = serializers.CharField(allow_blank=True)
    value = serializers.CharField(allow_blank=True)
    error = serializers.CharField()
    suggestion = serializers.CharField(allow_blank=True)


class ValidationResultSerializer(serializers.Serializer):
    type = serializers.CharField()
    is_valid = serializers.BooleanField()
    total_records = serializers.IntegerField()
    valid_records = serializers.IntegerField()
    error_count = serializers.IntegerField()
    errors = RowErrorSerializer(many=True)
    has_more_errors = serializers.BooleanField()
    duplicates = serializers.ListField(child=serializers.IntegerField())
    preview = serializers.ListField(child=serializers.DictField())
    message = serializers.CharField()


class ImportResultSerializer(serializers.Serializer):
    type = serializers.CharField()
    total_records = serializers.IntegerField()
    successful = serializers.IntegerField()
    failed = serializers.IntegerField()
    duplicates = serializers.IntegerField()
    errors = RowErrorSerializer(many=True)
    message = serializers.CharField()
