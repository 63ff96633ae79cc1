"""
Import booked GoCardless transactions into the ledger.

Provider transactions are upserted by their transaction id (stored as
external_id). Transactions a family member already validated keep their
category and validation on re-sync.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.assistant.services import categorize_transaction
from apps.ledger.models import Category, Origin, Transaction, TransactionFlow
from apps.ledger.services import get_or_create_bank

from .. import gocardless
from ..exceptions import BankingServiceError, TransactionMappingError
from ..models import BankConnection
from .connections import list_linked_accounts

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = 'Bank transaction'
MIN_CATEGORY_CONFIDENCE = 0.1
RECENT_TRANSACTIONS = 10

DESCRIPTION_FIELDS = (
    ('remittanceInformationUnstructured', 'remittance_information_unstructured'),
    ('remittanceInformationStructured', 'remittance_information_structured'),
    ('creditorName', 'creditor_name'),
    ('debtorName', 'debtor_name'),
    ('additionalInformation', 'additional_information'),
)


def _pick(raw: dict, *keys):
    """First non-empty value among camelCase/snake_case spellings."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, list):
            value = ' '.join(str(part) for part in value if part)
        if value:
            return value
    return None


def describe(raw: dict) -> str:
    for keys in DESCRIPTION_FIELDS:
        value = _pick(raw, *keys)
        if value:
            return str(value).strip()[:500]
    return FALLBACK_DESCRIPTION


def resolve_origin(owner_name: Optional[str]) -> Origin:
    """
    Origin whose name appears in the account owner's name, else the default.

    Raises:
        TransactionMappingError: Neither a match nor the default origin exists
    """
    if owner_name:
        owner = owner_name.lower()
        for origin in Origin.objects.all():
            if origin.name.lower() in owner:
                return origin

    origin = Origin.objects.filter(name__iexact=settings.GOCARDLESS_DEFAULT_ORIGIN).first()
    if origin is None:
        raise TransactionMappingError(
            f"No origin found and {settings.GOCARDLESS_DEFAULT_ORIGIN} origin not available"
        )
    return origin


def map_transaction(raw: dict, *, institution_name: str, owner_name: Optional[str] = None) -> dict:
    """
    Turn one booked GoCardless transaction into Transaction field values.

    Raises:
        TransactionMappingError: Missing id, amount or booking date
    """
    external_id = _pick(raw, 'transactionId', 'transaction_id', 'internalTransactionId')
    if not external_id:
        raise TransactionMappingError("Transaction has no id")

    amount_value = (raw.get('transactionAmount') or {}).get('amount', raw.get('amount'))
    try:
        amount = Decimal(str(amount_value))
    except (InvalidOperation, TypeError):
        raise TransactionMappingError(f"Invalid amount: {amount_value!r}")

    booking_date = _pick(raw, 'bookingDate', 'booking_date', 'valueDate', 'value_date')
    try:
        booked_on = date.fromisoformat(str(booking_date)[:10])
    except ValueError:
        raise TransactionMappingError(f"Invalid booking date: {booking_date!r}")

    flow = TransactionFlow.INCOME if amount >= 0 else TransactionFlow.EXPENSE
    absolute = abs(amount).quantize(Decimal('0.01'))
    description = describe(raw)

    suggestion = categorize_transaction(
        description=description,
        amount=absolute,
        flow=flow,
        merchant_name=_pick(raw, 'creditorName', 'creditor_name', 'debtorName', 'debtor_name'),
    )

    category = suggestion['category']
    confidence = suggestion['confidence']
    is_ai_generated = True
    if category is None or confidence < MIN_CATEGORY_CONFIDENCE:
        category = Category.objects.unknown(flow)
        confidence = MIN_CATEGORY_CONFIDENCE
        is_ai_generated = False

    return {
        'date': booked_on,
        'origin': resolve_origin(owner_name),
        'bank': get_or_create_bank(institution_name),
        'flow': flow,
        'category': category,
        'description': description,
        'incomes': absolute if flow == TransactionFlow.INCOME else None,
        'outgoings': absolute if flow == TransactionFlow.EXPENSE else None,
        'notes': _pick(raw, 'additionalInformation', 'additional_information'),
        'external_id': str(external_id),
        'raw_data': raw,
        'ai_confidence': confidence,
        'is_ai_generated': is_ai_generated,
        'is_validated': False,
    }


def _upsert(values: dict) -> bool:
    """Create or update by external_id. Returns True when created."""
    existing = Transaction.objects.filter(external_id=values['external_id']).first()
    if existing is None:
        Transaction.objects.create(**values)
        return True

    if existing.is_validated:
        for field in ('category', 'ai_confidence', 'is_ai_generated', 'is_validated'):
            values.pop(field)

    for field, value in values.items():
        setattr(existing, field, value)
    existing.save()
    return False


def _account_metadata(client, account_id: str, connection: Optional[BankConnection]) -> dict:
    account = client.get_account(account_id)
    details = client.get_account_details(account_id)

    institution_name = connection.institution_name if connection else ''
    if not institution_name:
        institution_name = account.get('institution_id') or 'Unknown Bank'

    return {
        'institution_name': institution_name,
        'owner_name': account.get('owner_name') or details.get('ownerName') or details.get('name'),
    }


def sync_account_transactions(
    *,
    account_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    connection: Optional[BankConnection] = None,
    client: Optional[gocardless.GoCardlessClient] = None,
) -> dict:
    """
    Import one account's booked transactions.

    A failing transaction is reported in errors and does not stop the others.

    Returns:
        Dict with account_id, processed, created, updated and errors
    """
    client = client or gocardless.get_client()
    result = {'account_id': account_id, 'processed': 0, 'created': 0, 'updated': 0, 'errors': []}

    try:
        metadata = _account_metadata(client, account_id, connection)
        booked = client.get_transactions(account_id, date_from=date_from, date_to=date_to)
    except BankingServiceError as e:
        message = f"Account {account_id}: {e}"
        logger.error(message)
        result['errors'].append(message)
        return result

    for raw in booked:
        result['processed'] += 1
        try:
            with transaction.atomic():
                values = map_transaction(raw, **metadata)
                if _upsert(values):
                    result['created'] += 1
                else:
                    result['updated'] += 1
        except (BankingServiceError, DatabaseError, ValueError) as e:
            transaction_id = raw.get('transactionId') or raw.get('transaction_id') or 'unknown'
            message = f"Transaction {transaction_id}: {e}"
            logger.warning(message)
            result['errors'].append(message)

    if connection is not None:
        connection.last_synced_at = timezone.now()
        connection.save(update_fields=['last_synced_at', 'updated_at'])

    logger.info(
        "Account %s synced: %d processed, %d created, %d updated, %d errors",
        account_id, result['processed'], result['created'], result['updated'], len(result['errors']),
    )
    return result


def sync_all_accounts(
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    client: Optional[gocardless.GoCardlessClient] = None,
) -> dict:
    """
    Sync every linked account.

    Returns:
        Dict with accounts_processed, total_transactions, created, updated
        and errors
    """
    client = client or gocardless.get_client()
    overall = {'accounts_processed': 0, 'total_transactions': 0, 'created': 0, 'updated': 0, 'errors': []}

    for entry in list_linked_accounts():
        account_result = sync_account_transactions(
            account_id=entry['account_id'],
            date_from=date_from,
            date_to=date_to,
            connection=entry['connection'],
            client=client,
        )
        overall['accounts_processed'] += 1
        overall['total_transactions'] += account_result['processed']
        overall['created'] += account_result['created']
        overall['updated'] += account_result['updated']
        overall['errors'].extend(account_result['errors'])

    return overall


def account_summary(*, account_id: str, client: Optional[gocardless.GoCardlessClient] = None) -> dict:
    """Account metadata with balances, the 10 most recent booked transactions and their total count."""
    client = client or gocardless.get_client()

    account = client.get_account(account_id)
    account['details'] = client.get_account_details(account_id)
    booked = client.get_transactions(account_id)

    return {
        'account': account,
        'balances': client.get_balances(account_id),
        'recent_transactions': booked[:RECENT_TRANSACTIONS],
        'transaction_count': len(booked),
    }
