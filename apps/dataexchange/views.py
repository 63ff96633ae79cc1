from django.http import HttpResponse
from django.utils.http import content_disposition_header
from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import feature_required
from .serializers import (
    UploadSerializer,
    ExportQuerySerializer,
    ValidationResultSerializer,
    ImportResultSerializer,
)
from .services import (
    DataType,
    XLSX_CONTENT_TYPE,
    UnsupportedFileError,
    UnknownDataTypeError,
    build_template,
    template_filename,
    validate_upload,
    build_error_report,
    error_report_filename,
    import_upload,
    export_data,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


def file_response(content: bytes, filename: str, content_type: str, headers=None) -> HttpResponse:
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = content_disposition_header(True, filename)
    response['Content-Length'] = str(len(content))
    for name, value in (headers or {}).items():
        response[name] = value
    return response


# =============================================================================
# Bulk upload
# =============================================================================

@extend_schema(
    parameters=[
        OpenApiParameter('data_type', OpenApiTypes.STR, OpenApiParameter.PATH, enum=DataType.choices),
    ],
    responses={(200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY, 400: ErrorResponseSerializer},
    description="Download an XLSX template with sample rows.",
    tags=['data'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('bulk_upload')])
def template(request, data_type):
    try:
        content = build_template(data_type)
    except UnknownDataTypeError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return file_response(content, template_filename(data_type), XLSX_CONTENT_TYPE)


@extend_schema(
    request={'multipart/form-data': UploadSerializer},
    responses={200: ValidationResultSerializer, 400: ErrorResponseSerializer},
    description="Check an upload without importing it. Lists the first errors and duplicate rows.",
    tags=['data'],
)
@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
@permission_classes([IsAuthenticated, feature_required('bulk_upload')])
def validate(request):
    serializer = UploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = validate_upload(
            upload=serializer.validated_data['file'],
            data_type=serializer.validated_data['type'],
        )
    except UnsupportedFileError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ValidationResultSerializer(result).data)


@extend_schema(
    request={'multipart/form-data': UploadSerializer},
    responses={(200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY, 400: ErrorResponseSerializer},
    description="Download every error of an upload as an XLSX report.",
    tags=['data'],
)
@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
@permission_classes([IsAuthenticated, feature_required('bulk_upload')])
def error_report(request):
    serializer = UploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    upload = serializer.validated_data['file']

    try:
        content = build_error_report(upload=upload, data_type=serializer.validated_data['type'])
    except UnsupportedFileError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return file_response(content, error_report_filename(upload.name), XLSX_CONTENT_TYPE)


@extend_schema(
    request={'multipart/form-data': UploadSerializer},
    responses={200: ImportResultSerializer, 400: ErrorResponseSerializer},
    description="Import the valid rows of an upload, creating missing origins, banks and categories.",
    tags=['data'],
)
@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
@permission_classes([IsAuthenticated, feature_required('bulk_upload')])
def import_data(request):
    serializer = UploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = import_upload(
            upload=serializer.validated_data['file'],
            data_type=serializer.validated_data['type'],
            user=request.user,
        )
    except UnsupportedFileError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ImportResultSerializer(result).data)


# =============================================================================
# Export
# =============================================================================

@extend_schema(
    parameters=[ExportQuerySerializer],
    responses={
        (200, 'text/csv'): OpenApiTypes.BINARY,
        (200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY,
    },
    description=(
        "Export transactions, analytics, budgets or categories as CSV or Excel. "
        "The record count is returned in the X-Record-Count header."
    ),
    tags=['data'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, feature_required('export')])
def export(request):
    serializer = ExportQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = export_data(
        export_type=data['type'],
        export_format=data['file_format'],
        date_from=data.get('date_from'),
        date_to=data.get('date_to'),
        category=data.get('category'),
        include_metadata=data['include_metadata'],
    )

    return file_response(
        result.content,
        result.filename,
        result.content_type,
        headers={
            'X-Record-Count': str(result.metadata['record_count']),
            'X-Generated-At': result.metadata['generated_at'].isoformat(),
        },
    )
