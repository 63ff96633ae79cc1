"""Domain-specific exceptions for upload and export services."""


class DataExchangeError(Exception):
    """Base exception for data exchange services."""
    pass


class UnsupportedFileError(DataExchangeError):
    """Raised when an upload is not a readable CSV or XLSX file."""
    pass


class UnknownDataTypeError(DataExchangeError):
    """Raised for a template, upload or export type that does not exist."""
    pass
