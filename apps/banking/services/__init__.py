"""
Banking app services layer.

GoCardless connections, transaction import and the recurring sync jobs.
"""

from .connections import (
    build_reference,
    list_institutions,
    create_connection,
    list_connections,
    get_connection,
    refresh_connection,
    handle_callback,
    delete_connection,
    list_linked_accounts,
)

from .transaction_sync import (
    describe,
    resolve_origin,
    map_transaction,
    sync_account_transactions,
    sync_all_accounts,
    account_summary,
)

from .sync_scheduler import (
    SyncScheduler,
    MANUAL_JOB_ID,
    parse_crontab,
    get_sync_statistics,
    get_scheduler,
)


__all__ = [
    # Connections
    'build_reference',
    'list_institutions',
    'create_connection',
    'list_connections',
    'get_connection',
    'refresh_connection',
    'handle_callback',
    'delete_connection',
    'list_linked_accounts',

    # Sync
    'describe',
    'resolve_origin',
    'map_transaction',
    'sync_account_transactions',
    'sync_all_accounts',
    'account_summary',

    # Scheduler
    'SyncScheduler',
    'MANUAL_JOB_ID',
    'parse_crontab',
    'get_sync_statistics',
    'get_scheduler',
]
