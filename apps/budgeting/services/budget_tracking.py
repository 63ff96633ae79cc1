"""
Budget tracking service.

A budget caps the outgoings of one expense category for a month, or for a
whole year when no month is set. Status thresholds:

    ok        percent_used < 80
    warning   80 <= percent_used <= 100
    exceeded  percent_used > 100
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Q, Sum

from apps.accounts.models import User
from apps.ledger.models import Category, Transaction, TransactionFlow

from ..models import Budget
from .exceptions import (
    BudgetNotFoundError,
    DuplicateBudgetError,
    InvalidBudgetError,
)

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = Decimal('80')
EXCEEDED_THRESHOLD = Decimal('100')

UPDATABLE_FIELDS = ('category', 'year', 'month', 'amount_limit')


class BudgetStatus:
    OK = 'ok'
    WARNING = 'warning'
    EXCEEDED = 'exceeded'


def status_for(percent_used: Decimal) -> str:
    if percent_used > EXCEEDED_THRESHOLD:
        return BudgetStatus.EXCEEDED
    if percent_used >= WARNING_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.OK


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal('0.00')
    return (part / whole * 100).quantize(Decimal('0.01'))


def get_budget_by_id(budget_id: UUID) -> Budget:
    try:
        return Budget.objects.select_related('category', 'created_by').get(id=budget_id)
    except Budget.DoesNotExist:
        raise BudgetNotFoundError(f"Budget with ID {budget_id} not found")


def spent_for_budget(budget: Budget) -> Decimal:
    """Sum of the category's outgoings inside the budget period."""
    queryset = Transaction.objects.filter(
        flow=TransactionFlow.EXPENSE,
        category=budget.category,
        year=budget.year,
    )
    if budget.month:
        queryset = queryset.filter(month=budget.month)

    return queryset.aggregate(total=Sum('outgoings'))['total'] or Decimal('0.00')


def budget_status(budget: Budget) -> dict:
    """
    Report how much of a budget has been used.

    Returns:
        Dict with budget, spent, remaining (negative once exceeded),
        percent_used and status
    """
    spent = spent_for_budget(budget)
    percent_used = _percentage(spent, budget.amount_limit)

    return {
        'budget': budget,
        'spent': spent,
        'remaining': budget.amount_limit - spent,
        'percent_used': percent_used,
        'status': status_for(percent_used),
    }


def budget_overview(*, year: int, month: Optional[str] = None) -> dict:
    """
    Status of every budget that applies to a period.

    With a month, that month's budgets plus the yearly ones are included;
    without one, every budget of the year.
    """
    queryset = Budget.objects.select_related('category').filter(year=year)
    if month:
        queryset = queryset.filter(Q(month=month) | Q(month__isnull=True))

    statuses = [budget_status(budget) for budget in queryset]

    total_limit = sum((item['budget'].amount_limit for item in statuses), Decimal('0.00'))
    total_spent = sum((item['spent'] for item in statuses), Decimal('0.00'))

    counts = {BudgetStatus.OK: 0, BudgetStatus.WARNING: 0, BudgetStatus.EXCEEDED: 0}
    for item in statuses:
        counts[item['status']] += 1

    return {
        'year': year,
        'month': month,
        'budgets': statuses,
        'total_limit': total_limit,
        'total_spent': total_spent,
        'total_remaining': total_limit - total_spent,
        'percent_used': _percentage(total_spent, total_limit),
        'counts': counts,
    }


def _check_budget_rules(*, category: Category, year: int, month: Optional[str], exclude_id=None) -> None:
    if category.flow != TransactionFlow.EXPENSE:
        raise InvalidBudgetError("Budgets can only be set on expense categories")

    duplicates = Budget.objects.filter(category=category, year=year, month=month)
    if exclude_id is not None:
        duplicates = duplicates.exclude(id=exclude_id)
    if duplicates.exists():
        period = f"{month} {year}" if month else str(year)
        raise DuplicateBudgetError(f"Category '{category.category}' already has a budget for {period}")


@transaction.atomic
def create_budget(
    *,
    category: Category,
    year: int,
    amount_limit: Decimal,
    month: Optional[str] = None,
    created_by: Optional[User] = None,
) -> Budget:
    _check_budget_rules(category=category, year=year, month=month)

    budget = Budget.objects.create(
        category=category,
        year=year,
        month=month,
        amount_limit=amount_limit,
        created_by=created_by,
    )
    logger.info("Budget %s created for %s (%s)", budget.id, category, year)
    return budget


@transaction.atomic
def update_budget(*, budget_id: UUID, data: dict) -> Budget:
    try:
        budget = Budget.objects.select_for_update().get(id=budget_id)
    except Budget.DoesNotExist:
        raise BudgetNotFoundError(f"Budget with ID {budget_id} not found")

    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(budget, field, data[field])

    _check_budget_rules(
        category=budget.category,
        year=budget.year,
        month=budget.month,
        exclude_id=budget.id,
    )

    budget.save()
    return budget


@transaction.atomic
def delete_budget(*, budget_id: UUID) -> None:
    deleted, _ = Budget.objects.filter(id=budget_id).delete()
    if not deleted:
        raise BudgetNotFoundError(f"Budget with ID {budget_id} not found")
