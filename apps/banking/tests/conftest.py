import pytest
from unittest.mock import MagicMock
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.ledger.models import (
    Origin,
    Category,
    TransactionFlow,
    MajorCategory,
)
from apps.banking.gocardless import GoCardlessClient
from apps.banking.models import BankConnection, RequisitionStatus


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
    """Free-tier member; bank sync belongs to the transactions feature."""
    return User.objects.create_user(
        email='joana@example.com',
        password='TestPass123!',
        display_name='Joana',
    )


@pytest.fixture
def other_user(db):
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
    )


@pytest.fixture
def authenticated_client(user):
    return _client_for(user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)


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
def salary(db):
    return Category.objects.create(
        flow=TransactionFlow.INCOME,
        major_category=MajorCategory.INCOME,
        category='Salário',
        sub_category='Salário Joana',
    )


# =============================================================================
# GoCardless
# =============================================================================

def _booked(transaction_id, amount, description='Continente compras', booking_date='2024-03-05', **extra):
    raw = {
        'transactionId': transaction_id,
        'bookingDate': booking_date,
        'valueDate': booking_date,
        'transactionAmount': {'amount': amount, 'currency': 'EUR'},
        'remittanceInformationUnstructured': description,
    }
    raw.update(extra)
    return raw


@pytest.fixture
def booked():
    """Factory for booked transactions as GoCardless returns them."""
    return _booked


@pytest.fixture
def provider():
    """GoCardless client double for a single account."""
    client = MagicMock(spec=GoCardlessClient)
    client.get_account.return_value = {
        'id': 'acc-1',
        'iban': 'PT50000201231234567890154',
        'institution_id': 'ACTIVOBANK_ACTVPTPL',
        'owner_name': 'Joana Silva',
    }
    client.get_account_details.return_value = {'currency': 'EUR', 'ownerName': 'Joana Silva'}
    client.get_balances.return_value = [
        {'balanceAmount': {'amount': '1520.35', 'currency': 'EUR'}, 'balanceType': 'interimAvailable'},
    ]
    client.get_transactions.return_value = [
        _booked('tx-1', '-42.50'),
        _booked('tx-2', '1800.00', description='Transferencia salario'),
    ]
    return client


@pytest.fixture
def connection(user):
    return BankConnection.objects.create(
        user=user,
        requisition_id='req-1',
        institution_id='ACTIVOBANK_ACTVPTPL',
        institution_name='Activo Bank',
        reference='user_1_1709640000000',
        status=RequisitionStatus.LINKED,
        link='https://ob.gocardless.com/psd2/start/req-1',
        account_ids=['acc-1'],
    )


@pytest.fixture
def pending_connection(user):
    return BankConnection.objects.create(
        user=user,
        requisition_id='req-2',
        institution_id='REVOLUT_REVOGB21',
        institution_name='Revolut',
        reference='user_1_1709650000000',
        status=RequisitionStatus.CREATED,
        link='https://ob.gocardless.com/psd2/start/req-2',
    )
