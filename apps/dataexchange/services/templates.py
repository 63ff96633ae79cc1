"""Downloadable XLSX templates for bulk upload."""

from datetime import date
from typing import Optional

import pandas as pd

from apps.ledger.models import MajorCategory, TransactionFlow

from .exceptions import UnknownDataTypeError
from .spreadsheets import write_workbook


class DataType:
    TRANSACTIONS = 'transactions'
    CATEGORIES = 'categories'
    ORIGINS = 'origins'
    BANKS = 'banks'

    choices = [TRANSACTIONS, CATEGORIES, ORIGINS, BANKS]


TRANSACTION_COLUMNS = [
    'Date', 'Origin', 'Bank', 'Flow', 'Major Category', 'Category', 'Sub Category',
    'Description', 'Income Amount', 'Outgoing Amount', 'Notes',
]
CATEGORY_COLUMNS = ['Flow', 'Major Category', 'Category', 'Sub Category']
NAME_COLUMNS = ['Name']

TEMPLATE_COLUMNS = {
    DataType.TRANSACTIONS: TRANSACTION_COLUMNS,
    DataType.CATEGORIES: CATEGORY_COLUMNS,
    DataType.ORIGINS: NAME_COLUMNS,
    DataType.BANKS: NAME_COLUMNS,
}

SAMPLE_ROWS = {
    DataType.TRANSACTIONS: [
        ['2024-01-15', 'Comum', 'Activo Bank', TransactionFlow.INCOME, MajorCategory.INCOME,
         'Salario', 'Salario Liq.', 'Salário janeiro', 2500.00, '', 'Transferência'],
        ['16/01/2024', 'Joana', 'Revolut', TransactionFlow.EXPENSE, MajorCategory.VARIABLE_COSTS,
         'Alimentação', 'Supermercado', 'Continente Matosinhos', '', 85.50, ''],
    ],
    DataType.CATEGORIES: [
        [TransactionFlow.INCOME, MajorCategory.INCOME, 'Salario', 'Salario Liq.'],
        [TransactionFlow.INCOME, MajorCategory.EXTRA_INCOME, 'Vendas Usados', 'Olx'],
        [TransactionFlow.EXPENSE, MajorCategory.FIXED_COSTS, 'Casa', 'Renda'],
        [TransactionFlow.EXPENSE, MajorCategory.VARIABLE_COSTS, 'Alimentação', 'Supermercado'],
    ],
    DataType.ORIGINS: [['Comum'], ['Joana'], ['Diogo']],
    DataType.BANKS: [['Activo Bank'], ['Caixa Geral de Depositos'], ['Revolut']],
}

SHEET_NAMES = {
    DataType.TRANSACTIONS: 'Transactions',
    DataType.CATEGORIES: 'Categories',
    DataType.ORIGINS: 'Origins',
    DataType.BANKS: 'Banks',
}


def _validation_rules() -> pd.DataFrame:
    rows = [('Flow', choice.value, choice.label) for choice in TransactionFlow]
    rows += [('Major Category', choice.value, choice.label) for choice in MajorCategory]
    rows += [
        ('Date', '2024-01-15', 'YYYY-MM-DD (recommended)'),
        ('Date', '15/01/2024', 'DD/MM/YYYY'),
        ('Date', '15-01-2024', 'DD-MM-YYYY'),
        ('Amount', '1250.50', 'Positive number on the side matching the flow; leave the other side empty'),
    ]
    return pd.DataFrame(rows, columns=['Field', 'Value', 'Description'])


def check_data_type(data_type: str) -> None:
    if data_type not in DataType.choices:
        raise UnknownDataTypeError(
            f"Invalid template type. Valid types: {', '.join(DataType.choices)}"
        )


def build_template(data_type: str) -> bytes:
    """
    XLSX template with sample rows for a data type.

    The transactions template carries a second sheet listing valid flows,
    major categories and date formats.

    Raises:
        UnknownDataTypeError: Unknown data type
    """
    check_data_type(data_type)

    sheets = {
        SHEET_NAMES[data_type]: pd.DataFrame(SAMPLE_ROWS[data_type], columns=TEMPLATE_COLUMNS[data_type]),
    }
    if data_type == DataType.TRANSACTIONS:
        sheets['Validation Rules'] = _validation_rules()

    return write_workbook(sheets)


def template_filename(data_type: str, today: Optional[date] = None) -> str:
    return f"{data_type}_template_{(today or date.today()).isoformat()}.xlsx"
