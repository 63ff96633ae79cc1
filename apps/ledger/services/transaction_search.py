"""Transaction search and filtering service."""

from datetime import date as date_type
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import Q, QuerySet

from ..models import Transaction

SORT_FIELDS = {
    'date': 'date',
    'description': 'description',
    'incomes': 'incomes',
    'outgoings': 'outgoings',
    'created_at': 'created_at',
    'category': 'category__category',
    'origin': 'origin__name',
    'bank': 'bank__name',
}

DEFAULT_ORDERING = ['-date', '-created_at']


def search_transactions(
    *,
    date_from: Optional[date_type] = None,
    date_to: Optional[date_type] = None,
    origin: Optional[UUID] = None,
    bank: Optional[UUID] = None,
    category: Optional[UUID] = None,
    flow: Optional[str] = None,
    major_category: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[int] = None,
    is_validated: Optional[bool] = None,
    is_ai_generated: Optional[bool] = None,
    sort_by: Optional[str] = None,
    sort_order: str = 'desc'
) -> QuerySet[Transaction]:
    """
    Filter and order ledger transactions.

    Amount bounds match either side of the ledger, so ``min_amount=50``
    returns incomes and outgoings of at least 50.

    Returns:
        Filtered QuerySet of Transaction
    """
    queryset = Transaction.objects.select_related('origin', 'bank', 'category', 'created_by')

    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)

    if origin:
        queryset = queryset.filter(origin_id=origin)
    if bank:
        queryset = queryset.filter(bank_id=bank)
    if category:
        queryset = queryset.filter(category_id=category)
    if flow:
        queryset = queryset.filter(flow=flow)
    if major_category:
        queryset = queryset.filter(category__major_category=major_category)

    if min_amount is not None:
        queryset = queryset.filter(Q(incomes__gte=min_amount) | Q(outgoings__gte=min_amount))
    if max_amount is not None:
        queryset = queryset.filter(Q(incomes__lte=max_amount) | Q(outgoings__lte=max_amount))

    if description:
        queryset = queryset.filter(description__icontains=description)

    if month:
        queryset = queryset.filter(month=month)
    if year:
        queryset = queryset.filter(year=year)

    if is_validated is not None:
        queryset = queryset.filter(is_validated=is_validated)
    if is_ai_generated is not None:
        queryset = queryset.filter(is_ai_generated=is_ai_generated)

    if sort_by in SORT_FIELDS:
        prefix = '' if sort_order == 'asc' else '-'
        return queryset.order_by(f"{prefix}{SORT_FIELDS[sort_by]}", '-created_at')

    return queryset.order_by(*DEFAULT_ORDERING)
