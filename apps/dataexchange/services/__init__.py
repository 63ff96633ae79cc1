"""Services for bulk upload and export."""

from .exceptions import (
    DataExchangeError,
    UnsupportedFileError,
    UnknownDataTypeError,
)
from .spreadsheets import (
    MAX_UPLOAD_SIZE,
    XLSX_CONTENT_TYPE,
    read_upload,
)
from .templates import (
    DataType,
    TEMPLATE_COLUMNS,
    build_template,
    template_filename,
)
from .bulk_upload import (
    normalize_flow,
    normalize_major_category,
    parse_date,
    parse_amount,
    check_rows,
    validate_upload,
    build_error_report,
    error_report_filename,
    import_upload,
)
from .export import (
    ExportType,
    ExportFormat,
    ExportResult,
    export_data,
    export_filename,
)

__all__ = [
    # Exceptions
    'DataExchangeError',
    'UnsupportedFileError',
    'UnknownDataTypeError',
    # Spreadsheets
    'MAX_UPLOAD_SIZE',
    'XLSX_CONTENT_TYPE',
    'read_upload',
    # Templates
    'DataType',
    'TEMPLATE_COLUMNS',
    'build_template',
    'template_filename',
    # Bulk upload
    'normalize_flow',
    'normalize_major_category',
    'parse_date',
    'parse_amount',
    'check_rows',
    'validate_upload',
    'build_error_report',
    'error_report_filename',
    'import_upload',
    # Export
    'ExportType',
    'ExportFormat',
    'ExportResult',
    'export_data',
    'export_filename',
]
