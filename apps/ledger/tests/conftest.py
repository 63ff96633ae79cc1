import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.ledger.models import (
    Origin,
    Bank,
    Category,
    Transaction,
    TransactionFlow,
    MajorCategory,
)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Free-tier family member (transactions are a free feature)."""
    return User.objects.create_user(
        email='joana@example.com',
        password='TestPass123!',
        display_name='Joana',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def origin(db):
    return Origin.objects.create(name='Comum')


@pytest.fixture
def other_origin(db):
    return Origin.objects.create(name='Diogo')


@pytest.fixture
def bank(db):
    return Bank.objects.create(name='Activo Bank')


@pytest.fixture
def other_bank(db):
    return Bank.objects.create(name='Revolut')


@pytest.fixture
def supermarket(db):
    """Expense category Alimentação / Supermercado."""
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.FIXED_COSTS,
        category='Alimentação',
        sub_category='Supermercado',
    )


@pytest.fixture
def restaurants(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.VARIABLE_COSTS,
        category='Alimentação',
        sub_category='Refeições fora de casa',
    )


@pytest.fixture
def salary(db):
    """Income category Salario / Salario Liq."""
    return Category.objects.create(
        flow=TransactionFlow.INCOME,
        major_category=MajorCategory.INCOME,
        category='Salario',
        sub_category='Salario Liq.',
    )


@pytest.fixture
def expense(db, origin, bank, supermarket, user):
    """A 54.30 supermarket expense on 15 March 2024."""
    return Transaction.objects.create(
        date=date(2024, 3, 15),
        origin=origin,
        bank=bank,
        flow=TransactionFlow.EXPENSE,
        category=supermarket,
        description='Continente compras',
        outgoings=Decimal('54.30'),
        created_by=user,
    )


@pytest.fixture
def income(db, origin, bank, salary, user):
    """A 2500.00 salary on 1 March 2024."""
    return Transaction.objects.create(
        date=date(2024, 3, 1),
        origin=origin,
        bank=bank,
        flow=TransactionFlow.INCOME,
        category=salary,
        description='Salario Marco',
        incomes=Decimal('2500.00'),
        created_by=user,
    )


@pytest.fixture
def ai_expense(db, other_origin, other_bank, restaurants):
    """Bank-synced expense categorized by the assistant, not yet reviewed."""
    return Transaction.objects.create(
        date=date(2024, 4, 2),
        origin=other_origin,
        bank=other_bank,
        flow=TransactionFlow.EXPENSE,
        category=restaurants,
        description='Pingo Doce Lisboa',
        outgoings=Decimal('120.00'),
        ai_confidence=0.6,
        is_ai_generated=True,
        external_id='gc-0001',
    )
