import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import Mock
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole, SubscriptionTier
from apps.ledger.models import (
    Origin,
    Bank,
    Category,
    Transaction,
    TransactionFlow,
    MajorCategory,
)
from apps.assistant.gemini import GeminiClient


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


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
    """Premium member; the assistant is a premium feature."""
    return User.objects.create_user(
        email='joana@example.com',
        password='TestPass123!',
        display_name='Joana',
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def free_user(db):
    return User.objects.create_user(
        email='diogo@example.com',
        password='TestPass123!',
        display_name='Diogo',
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
def authenticated_client(user):
    return _client_for(user)


@pytest.fixture
def free_client(free_user):
    return _client_for(free_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


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
        major_category=MajorCategory.VARIABLE_COSTS,
        category='Alimentação',
        sub_category='Refeições fora de casa',
    )


@pytest.fixture
def pharmacy(db):
    return Category.objects.create(
        flow=TransactionFlow.EXPENSE,
        major_category=MajorCategory.FIXED_COSTS,
        category='Saúde',
        sub_category='Medicamentos Adulto',
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
def make_transaction(comum, bank):
    """Factory for ledger rows; expenses unless flow says otherwise."""
    def _make(description, amount, category, **extra):
        fields = {
            'date': date(2024, 3, 15),
            'origin': comum,
            'bank': bank,
            'flow': category.flow,
            'category': category,
            'description': description,
        }
        if category.flow == TransactionFlow.INCOME:
            fields['incomes'] = Decimal(amount)
        else:
            fields['outgoings'] = Decimal(amount)
        fields.update(extra)
        return Transaction.objects.create(**fields)
    return _make


@pytest.fixture
def ai_expense(make_transaction, restaurants):
    """Expense the assistant put in the wrong category."""
    return make_transaction(
        'Pingo Doce Lisboa',
        '120.00',
        restaurants,
        ai_confidence=0.6,
        is_ai_generated=True,
    )


# =============================================================================
# Gemini
# =============================================================================

@pytest.fixture
def gemini_model():
    """Stands in for google.generativeai.GenerativeModel."""
    model = Mock()
    model.generate_content.return_value = Mock(text='')
    return model


@pytest.fixture
def gemini(gemini_model):
    return GeminiClient(model=gemini_model)


@pytest.fixture
def reply(gemini_model):
    """Set the text the next Gemini call returns."""
    def _reply(text):
        gemini_model.generate_content.return_value = Mock(text=text)
    return _reply
