import pytest
from datetime import date
from decimal import Decimal
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
from apps.budgeting.models import Goal, GoalType, GoalPriority


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def free_user(db):
    return User.objects.create_user(
        email='free@example.com',
        password='TestPass123!',
        display_name='Free User',
    )


@pytest.fixture
def basic_user(db):
    """Basic tier: budgets yes, goals no."""
    return User.objects.create_user(
        email='basic@example.com',
        password='TestPass123!',
        display_name='Basic User',
        subscription_tier=SubscriptionTier.BASIC,
    )


@pytest.fixture
def premium_user(db):
    return User.objects.create_user(
        email='premium@example.com',
        password='TestPass123!',
        display_name='Premium User',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def other_premium_user(db):
    return User.objects.create_user(
        email='diogo@example.com',
        password='TestPass123!',
        display_name='Diogo',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def free_client(free_user):
    return _client_for(free_user)


@pytest.fixture
def basic_client(basic_user):
    return _client_for(basic_user)


@pytest.fixture
def premium_client(premium_user):
    """Return API client authenticated as premium user."""
    return _client_for(premium_user)


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
        major_category=MajorCategory.FIXED_COSTS,
        category='Alimentação',
        sub_category='Supermercado',
    )


@pytest.fixture
def restaurants(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.GUILT_FREE,
        category='Lazer',
        sub_category='Restaurantes',
    )


@pytest.fixture
def salary(db):
    return Category.objects.create(
        flow=TransactionFlow.INCOME,
        major_category=MajorCategory.INCOME,
        category='Salário',
        sub_category='Salário',
    )


@pytest.fixture
def spend(db, comum, bank):
    """Factory recording an expense."""
    def _spend(category, amount, on):
        return Transaction.objects.create(
            date=on,
            origin=comum,
            bank=bank,
            flow=TransactionFlow.EXPENSE,
            category=category,
            description=f'{category.sub_category} {on}',
            outgoings=Decimal(amount),
        )
    return _spend


# =============================================================================
# Goals
# =============================================================================

@pytest.fixture
def emergency_fund(premium_user):
    """Started 2024-01-01, target 6000 by 2024-12-31."""
    return Goal.objects.create(
        owner=premium_user,
        title='Emergency Fund',
        goal_type=GoalType.EMERGENCY_FUND,
        target_amount=Decimal('6000.00'),
        current_amount=Decimal('1500.00'),
        start_date=date(2024, 1, 1),
        target_date=date(2024, 12, 31),
        priority=GoalPriority.HIGH,
    )


@pytest.fixture
def vacation(premium_user):
    return Goal.objects.create(
        owner=premium_user,
        title='Summer Vacation',
        goal_type=GoalType.SAVINGS,
        target_amount=Decimal('2000.00'),
        current_amount=Decimal('0.00'),
        start_date=date(2024, 1, 1),
        target_date=date(2024, 7, 1),
        priority=GoalPriority.LOW,
    )


@pytest.fixture
def other_premium_client(other_premium_user):
    return _client_for(other_premium_user)
