"""
Data export to CSV or Excel.

Every export type produces one or more named tables. Excel writes one
sheet per table plus an optional Metadata sheet; CSV writes a single
table, flattening multi-table exports with a leading ``section`` column.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

import pandas as pd
from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce, TruncMonth
from django.utils import timezone

from apps.analytics.analytics import AnalyticsQueries
from apps.budgeting.models import Budget
from apps.budgeting.services import budget_status
from apps.ledger.models import Category, TransactionFlow

from .exceptions import UnknownDataTypeError
from .spreadsheets import CSV_CONTENT_TYPE, XLSX_CONTENT_TYPE, cell, write_csv, write_workbook

logger = logging.getLogger(__name__)

MAX_EXPORT_ROWS = 10000
ZERO = Decimal('0.00')

_money = DecimalField(max_digits=14, decimal_places=2)


class ExportType:
    TRANSACTIONS = 'transactions'
    ANALYTICS = 'analytics'
    BUDGET = 'budget'
    CATEGORIES = 'categories'

    choices = [TRANSACTIONS, ANALYTICS, BUDGET, CATEGORIES]


class ExportFormat:
    CSV = 'csv'
    EXCEL = 'excel'

    choices = [CSV, EXCEL]


EXTENSIONS = {ExportFormat.CSV: 'csv', ExportFormat.EXCEL: 'xlsx'}
CONTENT_TYPES = {ExportFormat.CSV: CSV_CONTENT_TYPE, ExportFormat.EXCEL: XLSX_CONTENT_TYPE}


@dataclass
class ExportResult:
    filename: str
    content: bytes
    content_type: str
    metadata: dict


def _sum(field, **filters):
    return Coalesce(Sum(field, filter=Q(**filters) if filters else None), Value(ZERO), output_field=_money)


# =============================================================================
# Tables
# =============================================================================

def _transaction_rows(date_from, date_to, category) -> Dict[str, List[dict]]:
    queryset = (
        AnalyticsQueries.filtered_transactions(date_from=date_from, date_to=date_to, category=category)
        .select_related('origin', 'bank', 'category')
        .order_by('-date', '-created_at')[:MAX_EXPORT_ROWS]
    )

    rows = [
        {
            'id': txn.id,
            'date': txn.date,
            'origin': txn.origin.name,
            'bank': txn.bank.name,
            'flow': txn.flow,
            'major_category': txn.category.major_category,
            'category': txn.category.category,
            'sub_category': txn.category.sub_category,
            'description': txn.description,
            'incomes': txn.incomes,
            'outgoings': txn.outgoings,
            'notes': txn.notes or '',
            'is_validated': txn.is_validated,
            'is_ai_generated': txn.is_ai_generated,
            'created_at': txn.created_at.isoformat(),
        }
        for txn in queryset
    ]
    return {'Transactions': rows}


def _analytics_rows(date_from, date_to, category) -> Dict[str, List[dict]]:
    queryset = AnalyticsQueries.filtered_transactions(date_from=date_from, date_to=date_to, category=category)

    totals = queryset.aggregate(
        total_income=_sum('incomes', flow=TransactionFlow.INCOME),
        total_expenses=_sum('outgoings', flow=TransactionFlow.EXPENSE),
        total_transactions=Count('id'),
    )
    summary = {
        'total_transactions': totals['total_transactions'],
        'total_income': totals['total_income'],
        'total_expenses': totals['total_expenses'],
        'net_flow': totals['total_income'] - totals['total_expenses'],
    }

    monthly = [
        {
            'month': row['period'].strftime('%Y-%m'),
            'total_income': row['income'],
            'total_expenses': row['expenses'],
            'net_flow': row['income'] - row['expenses'],
            'transaction_count': row['count'],
        }
        for row in (
            queryset
            .annotate(period=TruncMonth('date'))
            .values('period')
            .annotate(
                income=_sum('incomes', flow=TransactionFlow.INCOME),
                expenses=_sum('outgoings', flow=TransactionFlow.EXPENSE),
                count=Count('id'),
            )
            .order_by('period')
        )
    ]

    categories = [
        {
            'category_id': row['category_id'],
            'flow': row['category__flow'],
            'category': row['category__category'],
            'sub_category': row['category__sub_category'],
            'incomes': row['incomes'],
            'outgoings': row['outgoings'],
            'total_amount': row['incomes'] + row['outgoings'],
            'transaction_count': row['count'],
        }
        for row in (
            queryset
            .values('category_id', 'category__flow', 'category__category', 'category__sub_category')
            .annotate(incomes=_sum('incomes'), outgoings=_sum('outgoings'), count=Count('id'))
            .order_by('category__flow', 'category__category', 'category__sub_category')
        )
    ]

    return {'Summary': [summary], 'Monthly': monthly, 'Categories': categories}


def _budget_rows(date_from, date_to, category) -> Dict[str, List[dict]]:
    queryset = Budget.objects.select_related('category')
    if date_from:
        queryset = queryset.filter(year__gte=date_from.year)
    if date_to:
        queryset = queryset.filter(year__lte=date_to.year)
    if category:
        queryset = queryset.filter(category_id=category)

    rows = []
    for budget in queryset.order_by('year', 'month', 'category__category'):
        status = budget_status(budget)
        rows.append({
            'category': budget.category.category,
            'sub_category': budget.category.sub_category,
            'year': budget.year,
            'month': budget.month or '',
            'budgeted_amount': budget.amount_limit,
            'actual_amount': status['spent'],
            'variance': status['spent'] - budget.amount_limit,
            'percent_used': status['percent_used'],
            'status': status['status'],
        })
    return {'Budget': rows}


def _category_rows(date_from, date_to, category) -> Dict[str, List[dict]]:
    queryset = Category.objects.annotate(transaction_count=Count('transactions'))
    if category:
        queryset = queryset.filter(id=category)

    rows = [
        {
            'id': c.id,
            'flow': c.flow,
            'major_category': c.major_category,
            'category': c.category,
            'sub_category': c.sub_category,
            'transaction_count': c.transaction_count,
        }
        for c in queryset.order_by('flow', 'category', 'sub_category')
    ]
    return {'Categories': rows}


TABLES = {
    ExportType.TRANSACTIONS: _transaction_rows,
    ExportType.ANALYTICS: _analytics_rows,
    ExportType.BUDGET: _budget_rows,
    ExportType.CATEGORIES: _category_rows,
}


# =============================================================================
# Rendering
# =============================================================================

def _frame(rows: List[dict]) -> pd.DataFrame:
    return pd.DataFrame([{key: cell(value) for key, value in row.items()} for row in rows])


def _render_csv(tables: Dict[str, List[dict]]) -> bytes:
    if len(tables) == 1:
        return write_csv(_frame(next(iter(tables.values()))))

    flattened = [
        {'section': section, **row}
        for section, rows in tables.items()
        for row in rows
    ]
    return write_csv(_frame(flattened))


def _render_excel(tables: Dict[str, List[dict]], metadata: Optional[dict]) -> bytes:
    sheets = {name: _frame(rows) for name, rows in tables.items()}
    if metadata is not None:
        sheets['Metadata'] = pd.DataFrame(
            [
                ('record_count', metadata['record_count']),
                ('generated_at', metadata['generated_at'].isoformat()),
                *[(f"filter_{key}", '' if value is None else str(value)) for key, value in metadata['filters'].items()],
            ],
            columns=['Field', 'Value'],
        )
    return write_workbook(sheets)


def export_filename(export_type: str, export_format: str, today: Optional[date] = None) -> str:
    return f"{export_type}_{(today or timezone.localdate()).isoformat()}.{EXTENSIONS[export_format]}"


def export_data(
    *,
    export_type: str,
    export_format: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category: Optional[UUID] = None,
    include_metadata: bool = True,
) -> ExportResult:
    """
    Export ledger data as a downloadable file.

    Args:
        export_type: transactions, analytics, budget or categories
        export_format: csv or excel
        date_from: Inclusive start (transactions and analytics by date,
            budgets by year)
        date_to: Inclusive end
        category: Restrict to one category
        include_metadata: Add a Metadata sheet (Excel only)

    Returns:
        ExportResult with filename, content, content_type and metadata
        (record_count, generated_at, filters)

    Raises:
        UnknownDataTypeError: Unknown export type or format
    """
    if export_type not in ExportType.choices:
        raise UnknownDataTypeError(f"Unsupported export type: {export_type}")
    if export_format not in ExportFormat.choices:
        raise UnknownDataTypeError(f"Unsupported format: {export_format}")

    tables = TABLES[export_type](date_from, date_to, category)
    if export_type == ExportType.ANALYTICS:
        record_count = tables['Summary'][0]['total_transactions']
    else:
        record_count = len(next(iter(tables.values())))

    metadata = {
        'record_count': record_count,
        'generated_at': timezone.now(),
        'filters': {
            'date_from': date_from,
            'date_to': date_to,
            'category': str(category) if category else None,
        },
    }

    if export_format == ExportFormat.CSV:
        content = _render_csv(tables)
    else:
        content = _render_excel(tables, metadata if include_metadata else None)

    filename = export_filename(export_type, export_format)
    logger.info("Exported %s as %s (%d records)", export_type, filename, metadata['record_count'])

    return ExportResult(
        filename=filename,
        content=content,
        content_type=CONTENT_TYPES[export_format],
        metadata=metadata,
    )
