"""Domain-specific exceptions for ledger services."""


class LedgerServiceError(Exception):
    """Base exception for ledger services."""
    pass


class TransactionNotFoundError(LedgerServiceError):
    """Raised when transaction does not exist."""
    pass


class InvalidTransactionError(LedgerServiceError):
    """Raised when a transaction breaks a ledger rule (flow/amount, year range)."""
    pass


class BulkOperationError(LedgerServiceError):
    """Raised when a bulk request is empty or references unknown fields."""
    pass


class ReferenceDataError(LedgerServiceError):
    """Raised when an origin, bank or category cannot be created."""
    pass
