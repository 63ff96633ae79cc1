"""Audit trail helper shared by transaction changes, sync jobs and categorization."""

from typing import Any, Dict, Optional

from ..models import AuditLog


def record_audit(
    *,
    table_name: str,
    record_id: Any,
    action: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    user=None
) -> AuditLog:
    """
    Append an audit log row.

    Args:
        table_name: Logical table, e.g. 'transactions' or 'sync_jobs'
        record_id: Primary key or job id of the affected record
        action: AuditAction value
        old_values: Snapshot before the change
        new_values: Snapshot after the change
        user: Acting user (anonymous users are not stored)

    Returns:
        Created AuditLog instance
    """
    return AuditLog.objects.record(
        table_name=table_name,
        record_id=record_id,
        action=action,
        old_values=old_values,
        new_values=new_values,
        user=user,
    )


def transaction_snapshot(txn) -> Dict[str, Any]:
    """JSON-safe view of the fields worth auditing."""
    return {
        'date': txn.date.isoformat() if txn.date else None,
        'origin': str(txn.origin_id),
        'bank': str(txn.bank_id),
        'flow': txn.flow,
        'category': str(txn.category_id),
        'description': txn.description,
        'incomes': str(txn.incomes) if txn.incomes is not None else None,
        'outgoings': str(txn.outgoings) if txn.outgoings is not None else None,
        'is_validated': txn.is_validated,
    }
