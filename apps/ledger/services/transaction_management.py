"""Transaction CRUD, bulk operations and validation service."""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction

from ..models import (
    AuditAction,
    Bank,
    Category,
    Origin,
    Transaction,
    TransactionFlow,
    MIN_YEAR,
    MAX_YEAR,
)
from .audit import record_audit, transaction_snapshot
from .exceptions import (
    BulkOperationError,
    InvalidTransactionError,
    TransactionNotFoundError,
)

User = get_user_model()

logger = logging.getLogger(__name__)

AUDIT_TABLE = 'transactions'

UPDATABLE_FIELDS = [
    'date', 'origin', 'bank', 'flow', 'category', 'description',
    'incomes', 'outgoings', 'notes', 'is_validated',
]


def check_transaction_rules(
    *,
    date: date_type,
    flow: str,
    category: Category,
    incomes: Optional[Decimal],
    outgoings: Optional[Decimal]
) -> None:
    """
    Enforce the ledger rules shared by every write path.

    Raises:
        InvalidTransactionError: If the amount side, category flow or year is wrong
    """
    if flow == TransactionFlow.INCOME:
        if incomes is None or incomes <= 0:
            raise InvalidTransactionError('Income transactions require a positive incomes amount')
    elif flow == TransactionFlow.EXPENSE:
        if outgoings is None or outgoings <= 0:
            raise InvalidTransactionError('Expense transactions require a positive outgoings amount')
    else:
        raise InvalidTransactionError(f"Invalid flow: {flow}")

    if category.flow != flow:
        raise InvalidTransactionError(
            f"Category '{category}' belongs to {category.flow}, not {flow}"
        )

    if not MIN_YEAR <= date.year <= MAX_YEAR:
        raise InvalidTransactionError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")


def get_transaction_by_id(transaction_id: UUID) -> Transaction:
    try:
        return (
            Transaction.objects
            .select_related('origin', 'bank', 'category', 'created_by')
            .get(id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")


@transaction.atomic
def create_transaction(
    *,
    date: date_type,
    origin: Origin,
    bank: Bank,
    flow: str,
    category: Category,
    description: str,
    incomes: Optional[Decimal] = None,
    outgoings: Optional[Decimal] = None,
    notes: Optional[str] = None,
    created_by: Optional[User] = None,
    is_validated: bool = False,
    external_id: Optional[str] = None,
    raw_data: Optional[Dict[str, Any]] = None,
    ai_confidence: Optional[float] = None,
    is_ai_generated: bool = False
) -> Transaction:
    """
    Create a ledger transaction.

    Month and year are derived from ``date`` on save.

    Returns:
        Created Transaction instance

    Raises:
        InvalidTransactionError: If the ledger rules are broken
    """
    check_transaction_rules(
        date=date,
        flow=flow,
        category=category,
        incomes=incomes,
        outgoings=outgoings,
    )

    txn = Transaction.objects.create(
        date=date,
        origin=origin,
        bank=bank,
        flow=flow,
        category=category,
        description=description,
        incomes=incomes,
        outgoings=outgoings,
        notes=notes,
        created_by=created_by,
        is_validated=is_validated,
        external_id=external_id,
        raw_data=raw_data,
        ai_confidence=ai_confidence,
        is_ai_generated=is_ai_generated,
    )

    record_audit(
        table_name=AUDIT_TABLE,
        record_id=txn.id,
        action=AuditAction.CREATE,
        new_values=transaction_snapshot(txn),
        user=created_by,
    )
    return txn


def _apply_updates(txn: Transaction, data: Dict[str, Any], user: Optional[User]) -> Transaction:
    old_values = transaction_snapshot(txn)
    original_category = txn.category

    for field, value in data.items():
        if field in UPDATABLE_FIELDS:
            setattr(txn, field, value)

    # Switching flow clears the amount on the other side
    if 'flow' in data:
        if txn.flow == TransactionFlow.INCOME and 'outgoings' not in data:
            txn.outgoings = None
        elif txn.flow == TransactionFlow.EXPENSE and 'incomes' not in data:
            txn.incomes = None

    check_transaction_rules(
        date=txn.date,
        flow=txn.flow,
        category=txn.category,
        incomes=txn.incomes,
        outgoings=txn.outgoings,
    )

    txn.save()

    if txn.category_id != original_category.id and txn.is_ai_generated:
        _learn_from_correction(txn, original_category, txn.category, user)

    record_audit(
        table_name=AUDIT_TABLE,
        record_id=txn.id,
        action=AuditAction.UPDATE,
        old_values=old_values,
        new_values=transaction_snapshot(txn),
        user=user,
    )
    return txn


def _learn_from_correction(txn, original_category, corrected_category, user):
    # Imported lazily: the assistant app reads ledger models at import time
    from apps.assistant.services import learn_from_correction

    learn_from_correction(
        transaction=txn,
        original_category=original_category,
        corrected_category=corrected_category,
        user=user,
    )


@transaction.atomic
def update_transaction(
    *,
    transaction_id: UUID,
    data: Dict[str, Any],
    user: Optional[User] = None
) -> Transaction:
    """
    Update an existing transaction.

    Month and year are recomputed when the date changes. A category change on
    an AI-categorized transaction is fed back to the categorizer.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        InvalidTransactionError: If the result breaks the ledger rules
    """
    try:
        txn = (
            Transaction.objects
            .select_for_update()
            .select_related('category')
            .get(id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

    return _apply_updates(txn, data, user)


@transaction.atomic
def delete_transaction(*, transaction_id: UUID, user: Optional[User] = None) -> None:
    """
    Permanently delete a transaction.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
    """
    try:
        txn = Transaction.objects.select_for_update().get(id=transaction_id)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

    record_audit(
        table_name=AUDIT_TABLE,
        record_id=txn.id,
        action=AuditAction.DELETE,
        old_values=transaction_snapshot(txn),
        user=user,
    )
    txn.delete()


@transaction.atomic
def validate_transaction(
    *,
    transaction_id: UUID,
    category: Optional[Category] = None,
    user: Optional[User] = None
) -> Transaction:
    """
    Mark a transaction as reviewed, optionally correcting its category.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        InvalidTransactionError: If the corrected category has another flow
    """
    try:
        txn = (
            Transaction.objects
            .select_for_update()
            .select_related('category')
            .get(id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

    data = {'is_validated': True}
    if category is not None and category.id != txn.category_id:
        data['category'] = category

    return _apply_updates(txn, data, user)


@transaction.atomic
def bulk_create_transactions(
    *,
    items: List[Dict[str, Any]],
    created_by: Optional[User] = None
) -> List[Transaction]:
    """
    Create several transactions in one database transaction.

    Raises:
        BulkOperationError: If no items were given
        InvalidTransactionError: If any item breaks the ledger rules
    """
    if not items:
        raise BulkOperationError('No transactions to create')

    created = [create_transaction(created_by=created_by, **item) for item in items]
    logger.info("Bulk created %d transactions", len(created))
    return created


@transaction.atomic
def bulk_update_transactions(
    *,
    ids: Iterable[UUID],
    updates: Dict[str, Any],
    user: Optional[User] = None
) -> int:
    """
    Apply the same field updates to several transactions.

    Returns:
        Number of updated transactions

    Raises:
        BulkOperationError: If ids or updates are empty or name unknown fields
        InvalidTransactionError: If any result breaks the ledger rules
    """
    ids = list(ids)
    if not ids:
        raise BulkOperationError('No transaction ids given')
    if not updates:
        raise BulkOperationError('No updates given')

    unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
    if unknown:
        raise BulkOperationError(f"Fields cannot be bulk updated: {', '.join(unknown)}")

    transactions = (
        Transaction.objects
        .select_for_update()
        .select_related('category')
        .filter(id__in=ids)
    )

    count = 0
    for txn in transactions:
        _apply_updates(txn, dict(updates), user)
        count += 1

    logger.info("Bulk updated %d transactions", count)
    return count


@transaction.atomic
def bulk_delete_transactions(*, ids: Iterable[UUID], user: Optional[User] = None) -> int:
    """
    Delete several transactions.

    Returns:
        Number of deleted transactions

    Raises:
        BulkOperationError: If no ids were given
    """
    ids = list(ids)
    if not ids:
        raise BulkOperationError('No transaction ids given')

    transactions = list(Transaction.objects.select_for_update().filter(id__in=ids))
    for txn in transactions:
        record_audit(
            table_name=AUDIT_TABLE,
            record_id=txn.id,
            action=AuditAction.DELETE,
            old_values=transaction_snapshot(txn),
            user=user,
        )

    deleted, _ = Transaction.objects.filter(id__in=[t.id for t in transactions]).delete()
    logger.info("Bulk deleted %d transactions", deleted)
    return deleted
