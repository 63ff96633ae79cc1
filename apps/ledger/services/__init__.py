"""Services for ledger business logic."""

from .exceptions import (
    LedgerServiceError,
    TransactionNotFoundError,
    InvalidTransactionError,
    BulkOperationError,
    ReferenceDataError,
)
from .audit import (
    record_audit,
    transaction_snapshot,
)
from .transaction_management import (
    check_transaction_rules,
    get_transaction_by_id,
    create_transaction,
    update_transaction,
    delete_transaction,
    validate_transaction,
    bulk_create_transactions,
    bulk_update_transactions,
    bulk_delete_transactions,
)
from .transaction_search import (
    search_transactions,
    SORT_FIELDS,
)
from .reference_data import (
    DEFAULT_ORIGIN,
    DEFAULT_ORIGINS,
    DEFAULT_BANKS,
    DEFAULT_CATEGORIES,
    seed_reference_data,
    category_hierarchy,
    get_or_create_origin,
    get_or_create_bank,
)

__all__ = [
    # Exceptions
    'LedgerServiceError',
    'TransactionNotFoundError',
    'InvalidTransactionError',
    'BulkOperationError',
    'ReferenceDataError',
    # Audit
    'record_audit',
    'transaction_snapshot',
    # Transaction Management
    'check_transaction_rules',
    'get_transaction_by_id',
    'create_transaction',
    'update_transaction',
    'delete_transaction',
    'validate_transaction',
    'bulk_create_transactions',
    'bulk_update_transactions',
    'bulk_delete_transactions',
    # Transaction Search
    'search_transactions',
    'SORT_FIELDS',
    # Reference Data
    'DEFAULT_ORIGIN',
    'DEFAULT_ORIGINS',
    'DEFAULT_BANKS',
    'DEFAULT_CATEGORIES',
    'seed_reference_data',
    'category_hierarchy',
    'get_or_create_origin',
    'get_or_create_bank',
]
