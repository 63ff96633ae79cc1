"""
Domain exceptions for the banking app.

Raised by the GoCardless client and the sync services; views translate
them into HTTP responses.
"""


class BankingServiceError(Exception):
    """Base exception for banking errors."""
    pass


class BankingNotConfiguredError(BankingServiceError):
    """Raised when GoCardless credentials are missing."""
    pass


class BankingProviderError(BankingServiceError):
    """Raised when GoCardless fails or answers with an error status."""

    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class ConnectionNotFoundError(BankingServiceError):
    """Raised when a bank connection doesn't exist."""
    pass


class TransactionMappingError(BankingServiceError):
    """Raised when a provider transaction cannot be turned into a ledger row."""
    pass


class SyncJobNotFoundError(BankingServiceError):
    """Raised when a scheduler job id is unknown."""
    pass


class InvalidScheduleError(BankingServiceError):
    """Raised when a cron expression cannot be parsed."""
    pass


class SyncFailedError(BankingServiceError):
    """Raised when a sync run fails as a whole."""
    pass

