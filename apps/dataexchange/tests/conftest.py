import io
import pytest
import pandas as pd
from datetime import date
from decimal import Decimal
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, SubscriptionTier
from apps.ledger.models import (
    Origin,
    Bank,
    Category,
    Transaction,
    TransactionFlow,
    MajorCategory,
)
from apps.dataexchange.services import TEMPLATE_COLUMNS, DataType


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def user(db):
    """Premium member: bulk upload and export."""
    return User.objects.create_user(
        email='joana@example.com',
        password='TestPass123!',
        display_name='Joana',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def basic_user(db):
    """Basic member: export only."""
    return User.objects.create_user(
        email='diogo@example.com',
        password='TestPass123!',
        display_name='Diogo',
        subscription_tier=SubscriptionTier.BASIC,
    )


@pytest.fixture
def free_user(db):
    return User.objects.create_user(
        email='ana@example.com',
        password='TestPass123!',
        display_name='Ana',
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    return _client_for(user)


@pytest.fixture
def basic_client(basic_user):
    return _client_for(basic_user)


@pytest.fixture
def free_client(free_user):
    return _client_for(free_user)


# =============================================================================
# Ledger
# =============================================================================

@pytest.fixture
def comum(db):
    return Origin.objects.create(name='Comum')


@pytest.fixture
def bank(db):
    return Bank.objects.create(name='Activo Bank')


@pytest.fixture
def groceries(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.VARIABLE_COSTS,
        category='Alimentação',
        sub_category='Supermercado',
    )


@pytest.fixture
def salary(db):
    return Category.objects.create(
        flow=TransactionFlow.INCOME,
        major_category=MajorCategory.INCOME,
        category='Salario',
        sub_category='Salario Liq.',
    )


@pytest.fixture
def expense(comum, bank, groceries):
    """85.50 at Continente on 16 January 2024."""
    return Transaction.objects.create(
        date=date(2024, 1, 16),
        origin=comum,
        bank=bank,
        flow=TransactionFlow.EXPENSE,
        category=groceries,
        description='Continente Matosinhos',
        outgoings=Decimal('85.50'),
    )


@pytest.fixture
def income(comum, bank, salary):
    return Transaction.objects.create(
        date=date(2024, 2, 1),
        origin=comum,
        bank=bank,
        flow=TransactionFlow.INCOME,
        category=salary,
        description='Salario fevereiro',
        incomes=Decimal('2500.00'),
    )


# =============================================================================
# Uploads
# =============================================================================

INCOME_ROW = [
    '2024-01-15', 'Comum', 'Activo Bank', 'ENTRADA', 'RENDIMENTO',
    'Salario', 'Salario Liq.', 'Salario janeiro', '2500.00', '', 'Transferencia',
]
EXPENSE_ROW = [
    '16/01/2024', 'Joana', 'Revolut', 'Saída', 'custos variáveis',
    'Alimentação', 'Supermercado', 'Continente Matosinhos', '', '85,50', '',
]


@pytest.fixture
def income_row():
    return list(INCOME_ROW)


@pytest.fixture
def expense_row():
    return list(EXPENSE_ROW)


def _csv(rows, data_type=DataType.TRANSACTIONS, name=None):
    frame = pd.DataFrame(rows, columns=TEMPLATE_COLUMNS[data_type])
    return SimpleUploadedFile(
        name or f'{data_type}.csv',
        frame.to_csv(index=False).encode('utf-8'),
        content_type='text/csv',
    )


def _xlsx(rows, data_type=DataType.TRANSACTIONS, name=None):
    buffer = io.BytesIO()
    pd.DataFrame(rows, columns=TEMPLATE_COLUMNS[data_type]).to_excel(buffer, index=False, engine='openpyxl')
    return SimpleUploadedFile(
        name or f'{data_type}.xlsx',
        buffer.getvalue(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )


@pytest.fixture
def csv_upload():
    """Factory: rows (lists in template column order) as an uploaded CSV."""
    return _csv


@pytest.fixture
def xlsx_upload():
    return _xlsx
