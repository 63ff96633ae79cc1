import pytest
from decimal import Decimal
from datetime import date
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


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def free_user(db):
    """Free tier: dashboard yes, analytics no."""
    return User.objects.create_user(
        email='free@example.com',
        password='TestPass123!',
        display_name='Free User',
    )


@pytest.fixture
def premium_user(db):
    """Premium tier includes analytics."""
    return User.objects.create_user(
        email='premium@example.com',
        password='TestPass123!',
        display_name='Premium User',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def free_client(api_client, free_user):
    refresh = RefreshToken.for_user(free_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def premium_client(api_client, premium_user):
    """Return API client authenticated as premium user."""
    refresh = RefreshToken.for_user(premium_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


# =============================================================================
# Ledger reference data
# =============================================================================

@pytest.fixture
def comum(db):
    return Origin.objects.create(name='Comum')


@pytest.fixture
def joana(db):
    return Origin.objects.create(name='Joana')


@pytest.fixture
def bank(db):
    return Bank.objects.create(name='Millenium BCP')


@pytest.fixture
def salary(db):
    return Category.objects.create(
        flow=TransactionFlow.INCOME,
        major_category=MajorCategory.INCOME,
        category='Salario',
        sub_category='Salario Liq.',
    )


@pytest.fixture
def groceries(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.FIXED_COSTS,
        category='Alimentação',
        sub_category='Supermercado',
    )


@pytest.fixture
def leisure(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.GUILT_FREE,
        category='Lazer',
        sub_category='Date Night',
    )


@pytest.fixture
def make_transaction(comum, bank):
    """Factory creating a transaction with sensible defaults."""

    def _make(*, day, category, amount, origin=None, description='Movimento'):
        amount = Decimal(str(amount))
        is_income = category.flow == TransactionFlow.INCOME
        return Transaction.objects.create(
            date=day,
            origin=origin or comum,
            bank=bank,
            flow=category.flow,
            category=category,
            description=description,
            incomes=amount if is_income else None,
            outgoings=None if is_income else amount,
        )

    return _make


@pytest.fixture
def march_ledger(make_transaction, salary, groceries, leisure, joana):
    """
    March 2024: 3000 income, 400 groceries (2 rows), 100 leisure by Joana.
    """
    make_transaction(day=date(2024, 3, 1), category=salary, amount='3000.00')
    make_transaction(day=date(2024, 3, 5), category=groceries, amount='250.00')
    make_transaction(day=date(2024, 3, 20), category=groceries, amount='150.00')
    make_transaction(day=date(2024, 3, 22), category=leisure, amount='100.00', origin=joana)
    # outside the March window
    make_transaction(day=date(2024, 4, 2), category=groceries, amount='999.00')
