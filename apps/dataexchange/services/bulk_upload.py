"""
Bulk upload of transactions and reference data.

Rows are checked before anything is written. Each row is reported by its
spreadsheet row number (the header is row 1). A transaction repeating the
date, description and amount of an existing one, or of an earlier row of
the same file, is a duplicate and is skipped rather than failed.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

import pandas as pd
from django.db import transaction

from apps.accounts.models import User
from apps.ledger.models import (
    Bank,
    Category,
    MajorCategory,
    Origin,
    Transaction,
    TransactionFlow,
    MIN_YEAR,
    MAX_YEAR,
)
from apps.ledger.services import (
    InvalidTransactionError,
    ReferenceDataError,
    create_transaction,
    get_or_create_bank,
    get_or_create_origin,
)

from .spreadsheets import is_blank, read_upload, write_workbook
from .templates import DataType, check_data_type

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 10
MAX_AMOUNT = Decimal('9999999999.99')
PREVIEW_ROWS = 5
FIRST_DATA_ROW = 2

# Excel counts days from 1899-12-30 (it treats 1900 as a leap year)
EXCEL_EPOCH = date(1899, 12, 30)

DATE_FORMATS = ('%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%Y/%m/%d', '%Y-%m-%d %H:%M:%S')

FLOW_ALIASES = {
    'ENTRADA': TransactionFlow.INCOME,
    'INCOME': TransactionFlow.INCOME,
    'RECEITA': TransactionFlow.INCOME,
    'SAIDA': TransactionFlow.EXPENSE,
    'EXPENSE': TransactionFlow.EXPENSE,
    'DESPESA': TransactionFlow.EXPENSE,
}

MAJOR_CATEGORY_ALIASES = {
    **{choice.value: choice for choice in MajorCategory},
    **{choice.name: choice for choice in MajorCategory},
    'ECONOMIA_E_INVESTIMENTOS': MajorCategory.SAVINGS_INVESTMENTS,
}

REQUIRED_TEXT = {
    DataType.TRANSACTIONS: ['Origin', 'Bank', 'Category', 'Sub Category', 'Description'],
    DataType.CATEGORIES: ['Category', 'Sub Category'],
    DataType.ORIGINS: ['Name'],
    DataType.BANKS: ['Name'],
}


# =============================================================================
# Value parsing
# =============================================================================

def _fold(value) -> str:
    """'Saída ' -> 'SAIDA', 'custos variáveis' -> 'CUSTOS_VARIAVEIS'."""
    decomposed = unicodedata.normalize('NFD', str(value).strip().upper())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r'[\s\-]+', '_', stripped)


def normalize_flow(value) -> Optional[str]:
    if is_blank(value):
        return None
    return FLOW_ALIASES.get(_fold(value))


def normalize_major_category(value) -> Optional[str]:
    if is_blank(value):
        return None
    return MAJOR_CATEGORY_ALIASES.get(_fold(value))


def parse_date(value) -> Optional[date]:
    """ISO, dd/mm/yyyy, dd-mm-yyyy, spreadsheet dates and Excel serial numbers."""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return EXCEL_EPOCH + timedelta(days=int(value))

    text = str(value).strip()
    if text.isdigit():
        return EXCEL_EPOCH + timedelta(days=int(text))
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value) -> Optional[Decimal]:
    """'1.234,56', '1,234.56', '85,5', '€ 12' or a number as Decimal.

    Anything that is not a finite amount fitting Transaction's 12 digits
    parses as None.
    """
    if is_blank(value):
        return None
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        text = str(value)
    else:
        text = str(value).replace('€', '').replace(' ', '').strip()
        if ',' in text and '.' in text:
            if text.rfind(',') > text.rfind('.'):
                text = text.replace('.', '').replace(',', '.')
            else:
                text = text.replace(',', '')
        else:
            text = text.replace(',', '.')

    try:
        amount = Decimal(text)
        if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
            return None
        return amount.quantize(Decimal('0.01'))
    except InvalidOperation:
        return None


def _display(value) -> str:
    if is_blank(value):
        return ''
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    return str(value)


def _text(value) -> str:
    return '' if is_blank(value) else str(value).strip()


# =============================================================================
# Row checks
# =============================================================================

@dataclass
class RowCheck:
    number: int
    values: Optional[Dict] = None
    errors: List[Dict] = field(default_factory=list)
    duplicate: bool = False

    def fail(self, column, value, error, suggestion=''):
        self.errors.append({
            'row': self.number,
            'column': column,
            'value': _display(value),
            'error': error,
            'suggestion': suggestion,
        })


def _check_required(check: RowCheck, row: Dict, columns: List[str]) -> None:
    for column in columns:
        if is_blank(row.get(column)):
            check.fail(column, row.get(column), f"{column} is required", 'Provide a descriptive value')


def _check_flow_and_major(check: RowCheck, row: Dict) -> tuple:
    flow = normalize_flow(row.get('Flow'))
    if flow is None:
        check.fail('Flow', row.get('Flow'), 'Invalid flow value',
                   'Use ENTRADA (or INCOME) for income and SAIDA (or EXPENSE) for expenses')

    major = normalize_major_category(row.get('Major Category'))
    if major is None:
        check.fail('Major Category', row.get('Major Category'), 'Invalid major category',
                   f"Use one of: {', '.join(MajorCategory.values)}")

    return flow, major


def _check_transaction(check: RowCheck, row: Dict) -> None:
    raw_date = row.get('Date')
    day = parse_date(raw_date)
    if is_blank(raw_date):
        check.fail('Date', raw_date, 'Date is required', 'Use format YYYY-MM-DD (e.g., 2024-01-15)')
    elif day is None:
        check.fail('Date', raw_date, 'Invalid date format', 'Use YYYY-MM-DD, DD/MM/YYYY or DD-MM-YYYY')
    elif not MIN_YEAR <= day.year <= MAX_YEAR:
        check.fail('Date', raw_date, f"Year must be between {MIN_YEAR} and {MAX_YEAR}")

    flow, major = _check_flow_and_major(check, row)

    incomes = parse_amount(row.get('Income Amount'))
    outgoings = parse_amount(row.get('Outgoing Amount'))
    if flow is not None:
        side, other = (
            ('Income Amount', 'Outgoing Amount') if flow == TransactionFlow.INCOME
            else ('Outgoing Amount', 'Income Amount')
        )
        amount = incomes if flow == TransactionFlow.INCOME else outgoings
        if is_blank(row.get(side)):
            check.fail(side, row.get(side), f"{side} is required for {flow} transactions", 'Enter a positive number')
        elif amount is None or amount <= 0:
            check.fail(side, row.get(side), f"Invalid {side}", f"Enter a positive number up to {MAX_AMOUNT}")
        if not is_blank(row.get(other)):
            check.fail(other, row.get(other), f"{other} should be empty for {flow} transactions", 'Leave this field empty')

    _check_required(check, row, REQUIRED_TEXT[DataType.TRANSACTIONS])

    if not check.errors:
        check.values = {
            'date': day,
            'origin': _text(row['Origin']),
            'bank': _text(row['Bank']),
            'flow': flow,
            'major_category': major,
            'category': _text(row['Category']),
            'sub_category': _text(row['Sub Category']),
            'description': _text(row['Description'])[:500],
            'incomes': incomes if flow == TransactionFlow.INCOME else None,
            'outgoings': outgoings if flow == TransactionFlow.EXPENSE else None,
            'notes': _text(row.get('Notes')) or None,
        }


def _check_category(check: RowCheck, row: Dict) -> None:
    flow, major = _check_flow_and_major(check, row)
    _check_required(check, row, REQUIRED_TEXT[DataType.CATEGORIES])

    if not check.errors:
        check.values = {
            'flow': flow,
            'major_category': major,
            'category': _text(row['Category']),
            'sub_category': _text(row['Sub Category']),
        }


def _check_name(check: RowCheck, row: Dict) -> None:
    _check_required(check, row, ['Name'])
    if not check.errors:
        check.values = {'name': _text(row['Name'])}


def _duplicate_key(data_type: str, values: Dict) -> tuple:
    if data_type == DataType.TRANSACTIONS:
        amount = values['incomes'] if values['flow'] == TransactionFlow.INCOME else values['outgoings']
        return (values['date'], values['description'].lower(), amount)
    if data_type == DataType.CATEGORIES:
        return (values['flow'], values['major_category'], values['category'].lower(), values['sub_category'].lower())
    return (values['name'].lower(),)


def _existing_keys(data_type: str, checks: List[RowCheck]) -> set:
    parsed = [c.values for c in checks if c.values]
    if not parsed:
        return set()

    if data_type == DataType.TRANSACTIONS:
        dates = {values['date'] for values in parsed}
        return {
            (txn.date, txn.description.strip().lower(), txn.amount)
            for txn in Transaction.objects.filter(date__in=dates)
        }
    if data_type == DataType.CATEGORIES:
        return {
            (c.flow, c.major_category, c.category.lower(), c.sub_category.lower())
            for c in Category.objects.all()
        }
    model = Origin if data_type == DataType.ORIGINS else Bank
    return {(name.lower(),) for name in model.objects.values_list('name', flat=True)}


ROW_CHECKS = {
    DataType.TRANSACTIONS: _check_transaction,
    DataType.CATEGORIES: _check_category,
    DataType.ORIGINS: _check_name,
    DataType.BANKS: _check_name,
}


def check_rows(rows: List[Dict], data_type: str) -> List[RowCheck]:
    """Parse and check every row, flagging duplicates of stored or earlier rows."""
    check_data_type(data_type)

    checks = []
    for index, row in enumerate(rows):
        check = RowCheck(number=index + FIRST_DATA_ROW)
        ROW_CHECKS[data_type](check, row)
        checks.append(check)

    seen = _existing_keys(data_type, checks)
    for check in checks:
        if not check.values:
            continue
        key = _duplicate_key(data_type, check.values)
        if key in seen:
            check.duplicate = True
        seen.add(key)

    return checks


# =============================================================================
# Entry points
# =============================================================================

def validate_upload(*, upload, data_type: str) -> dict:
    """
    Check an upload without writing anything.

    Returns:
        Dict with is_valid, total_records, valid_records, error_count,
        the first errors, has_more_errors, duplicate row numbers and a
        preview of the first rows

    Raises:
        UnsupportedFileError: Unreadable file
        UnknownDataTypeError: Unknown data type
    """
    check_data_type(data_type)
    rows = read_upload(upload)
    checks = check_rows(rows, data_type)

    errors = [error for check in checks for error in check.errors]
    duplicates = [check.number for check in checks if check.duplicate]
    valid = sum(1 for check in checks if check.values and not check.duplicate)

    if errors:
        message = f"Found {len(errors)} error(s) in {len(rows)} record(s)."
    else:
        message = f"File validation successful. {valid} records ready for import."

    return {
        'type': data_type,
        'is_valid': not errors,
        'total_records': len(rows),
        'valid_records': valid,
        'error_count': len(errors),
        'errors': errors[:MAX_REPORTED_ERRORS],
        'has_more_errors': len(errors) > MAX_REPORTED_ERRORS,
        'duplicates': duplicates,
        'preview': [
            {column: _display(value) for column, value in row.items()}
            for row in rows[:PREVIEW_ROWS]
        ],
        'message': message,
    }


def build_error_report(*, upload, data_type: str) -> bytes:
    """XLSX listing every error of an upload, one row per problem."""
    check_data_type(data_type)
    checks = check_rows(read_upload(upload), data_type)

    frame = pd.DataFrame(
        [
            [error['row'], error['column'], error['value'], error['error'], error['suggestion']]
            for check in checks
            for error in check.errors
        ],
        columns=['Row', 'Column', 'Current Value', 'Error', 'Suggestion'],
    )
    return write_workbook({'Errors': frame})


def error_report_filename(upload_name: str, today: Optional[date] = None) -> str:
    base = re.sub(r'\.[^/.]+$', '', upload_name or 'upload')
    return f"{base}_errors_{(today or date.today()).isoformat()}.xlsx"


def _import_transaction(values: Dict, user: Optional[User]) -> None:
    category, _ = Category.objects.get_or_create(
        flow=values['flow'],
        major_category=values['major_category'],
        category=values['category'][:100],
        sub_category=values['sub_category'][:100],
    )
    create_transaction(
        date=values['date'],
        origin=get_or_create_origin(values['origin']),
        bank=get_or_create_bank(values['bank']),
        flow=values['flow'],
        category=category,
        description=values['description'],
        incomes=values['incomes'],
        outgoings=values['outgoings'],
        notes=values['notes'],
        created_by=user,
        is_validated=True,
    )


def _import_category(values: Dict, user: Optional[User]) -> None:
    Category.objects.get_or_create(
        flow=values['flow'],
        major_category=values['major_category'],
        category=values['category'][:100],
        sub_category=values['sub_category'][:100],
    )


def _import_origin(values: Dict, user: Optional[User]) -> None:
    get_or_create_origin(values['name'])


def _import_bank(values: Dict, user: Optional[User]) -> None:
    get_or_create_bank(values['name'])


IMPORTERS = {
    DataType.TRANSACTIONS: _import_transaction,
    DataType.CATEGORIES: _import_category,
    DataType.ORIGINS: _import_origin,
    DataType.BANKS: _import_bank,
}


def import_upload(*, upload, data_type: str, user: Optional[User] = None) -> dict:
    """
    Import the valid rows of an upload.

    Missing origins, banks and categories referenced by transaction rows
    are created. Imported transactions count as validated. Rows with
    errors are counted as failed; duplicates are skipped.

    Returns:
        Dict with total_records, successful, failed, duplicates, errors
        and message

    Raises:
        UnsupportedFileError: Unreadable file
        UnknownDataTypeError: Unknown data type
    """
    check_data_type(data_type)
    rows = read_upload(upload)
    checks = check_rows(rows, data_type)

    successful = failed = duplicates = 0
    errors = []

    for check in checks:
        if check.errors:
            failed += 1
            errors.extend(check.errors)
            continue
        if check.duplicate:
            duplicates += 1
            continue

        try:
            with transaction.atomic():
                IMPORTERS[data_type](check.values, user)
        except (InvalidTransactionError, ReferenceDataError) as e:
            failed += 1
            check.fail('', '', str(e))
            errors.extend(check.errors)
            continue

        successful += 1

    logger.info(
        "Imported %s: %d successful, %d failed, %d duplicates",
        data_type, successful, failed, duplicates,
    )

    return {
        'type': data_type,
        'total_records': len(rows),
        'successful': successful,
        'failed': failed,
        'duplicates': duplicates,
        'errors': errors,
        'message': f"Successfully imported {successful} {data_type} records",
    }
