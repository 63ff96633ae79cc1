import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from apps.ledger.models import Bank, Category, Origin, Transaction, TransactionFlow
from apps.banking.exceptions import BankingProviderError, TransactionMappingError
from apps.banking.models import BankConnection, RequisitionStatus
from apps.banking.services import (
    map_transaction,
    sync_account_transactions,
    sync_all_accounts,
    account_summary,
)
from apps.banking.services.transaction_sync import describe


CATEGORIZE = 'apps.banking.services.transaction_sync.categorize_transaction'


def suggestion(category, confidence=0.85):
    return {
        'category': category,
        'confidence': confidence,
        'reasoning': 'Matched keywords',
        'alternatives': [],
        'source': 'rules',
    }


# =============================================================================
# Mapping
# =============================================================================

@pytest.mark.django_db
class TestMapTransaction:

    def test_expense(self, comum, groceries, booked):
        """Negative amounts become expenses."""
        with patch(CATEGORIZE, return_value=suggestion(groceries)) as categorize:
            values = map_transaction(booked('tx-1', '-42.50'), institution_name='Activo Bank')

        assert values['flow'] == TransactionFlow.EXPENSE
        assert values['outgoings'] == Decimal('42.50')
        assert values['incomes'] is None
        assert values['date'] == date(2024, 3, 5)
        assert values['description'] == 'Continente compras'
        assert values['category'] == groceries
        assert values['ai_confidence'] == 0.85
        assert values['is_ai_generated'] is True
        assert values['is_validated'] is False
        assert values['external_id'] == 'tx-1'
        assert values['origin'] == comum
        assert values['bank'].name == 'Activo Bank'
        assert categorize.call_args.kwargs['flow'] == TransactionFlow.EXPENSE
        assert categorize.call_args.kwargs['amount'] == Decimal('42.50')

    def test_income(self, comum, salary, booked):
        """Positive amounts become income."""
        with patch(CATEGORIZE, return_value=suggestion(salary)):
            values = map_transaction(booked('tx-2', '1800.00'), institution_name='Activo Bank')

        assert values['flow'] == TransactionFlow.INCOME
        assert values['incomes'] == Decimal('1800.00')
        assert values['outgoings'] is None

    def test_low_confidence_uses_unknown_category(self, comum, groceries, booked):
        """Weak suggestions use the unknown category."""
        with patch(CATEGORIZE, return_value=suggestion(groceries, confidence=0.05)):
            values = map_transaction(booked('tx-1', '-3.20'), institution_name='Activo Bank')

        assert values['category'] == Category.objects.unknown(TransactionFlow.EXPENSE)
        assert values['ai_confidence'] == 0.1
        assert values['is_ai_generated'] is False

    def test_no_suggestion_uses_unknown_category(self, comum, booked):
        """No suggestion uses the unknown category."""
        with patch(CATEGORIZE, return_value=suggestion(None, confidence=0.0)):
            values = map_transaction(booked('tx-2', '15.00'), institution_name='Activo Bank')

        assert values['category'] == Category.objects.unknown(TransactionFlow.INCOME)

    def test_origin_from_owner_name(self, comum, joana, groceries, booked):
        """The account owner picks the origin."""
        with patch(CATEGORIZE, return_value=suggestion(groceries)):
            values = map_transaction(
                booked('tx-1', '-42.50'),
                institution_name='Activo Bank',
                owner_name='JOANA SILVA',
            )

        assert values['origin'] == joana

    def test_missing_default_origin(self, groceries, booked):
        """Without Comum the mapping fails."""
        with patch(CATEGORIZE, return_value=suggestion(groceries)):
            with pytest.raises(TransactionMappingError, match='Comum origin not available'):
                map_transaction(booked('tx-1', '-42.50'), institution_name='Activo Bank')

    def test_existing_bank_is_reused(self, comum, groceries, booked):
        """The bank is matched by institution name."""
        Bank.objects.create(name='Activo Bank')

        with patch(CATEGORIZE, return_value=suggestion(groceries)):
            values = map_transaction(booked('tx-1', '-42.50'), institution_name='ACTIVO BANK')

        assert Bank.objects.count() == 1
        assert values['bank'].name == 'Activo Bank'

    def test_missing_id(self, comum, booked):
        """Transactions need an id."""
        raw = booked('tx-1', '-1.00')
        del raw['transactionId']

        with pytest.raises(TransactionMappingError):
            map_transaction(raw, institution_name='Activo Bank')

    def test_invalid_amount(self, comum, booked):
        """Amounts must be numeric."""
        with pytest.raises(TransactionMappingError, match='Invalid amount'):
            map_transaction(booked('tx-1', 'n/a'), institution_name='Activo Bank')


class TestDescribe:

    def test_prefers_remittance_information(self):
        """Remittance text comes first."""
        raw = {'remittanceInformationUnstructured': ' Compra Pingo Doce ', 'creditorName': 'Pingo Doce'}
        assert describe(raw) == 'Compra Pingo Doce'

    def test_falls_back_to_creditor(self):
        """The creditor name is next."""
        assert describe({'creditor_name': 'EDP Comercial'}) == 'EDP Comercial'

    def test_joins_structured_lists(self):
        """Structured lists are joined."""
        assert describe({'remittanceInformationStructured': ['REF', '123']}) == 'REF 123'

    def test_fallback(self):
        """Nothing usable gives a generic description."""
        assert describe({}) == 'Bank transaction'


# =============================================================================
# Sync
# =============================================================================

@pytest.mark.django_db
class TestSyncAccount:

    @pytest.fixture(autouse=True)
    def categorizer(self, groceries):
        with patch(CATEGORIZE, return_value=suggestion(groceries)) as categorize:
            yield categorize

    def test_creates_transactions(self, comum, joana, provider, connection):
        """New transactions are created."""
        result = sync_account_transactions(
            account_id='acc-1',
            date_from=date(2024, 3, 1),
            connection=connection,
            client=provider,
        )

        assert result == {'account_id': 'acc-1', 'processed': 2, 'created': 2, 'updated': 0, 'errors': []}
        provider.get_transactions.assert_called_once_with('acc-1', date_from=date(2024, 3, 1), date_to=None)

        expense = Transaction.objects.get(external_id='tx-1')
        assert expense.outgoings == Decimal('42.50')
        assert expense.origin == joana
        assert expense.bank.name == 'Activo Bank'
        assert expense.raw_data['transactionId'] == 'tx-1'

        connection.refresh_from_db()
        assert connection.last_synced_at is not None

    def test_resync_updates(self, comum, provider, connection):
        """A second sync updates by external id."""
        sync_account_transactions(account_id='acc-1', connection=connection, client=provider)
        result = sync_account_transactions(account_id='acc-1', connection=connection, client=provider)

        assert result['created'] == 0
        assert result['updated'] == 2
        assert Transaction.objects.count() == 2

    def test_validated_transaction_keeps_category(self, comum, provider, connection, restaurants):
        """Validated categories survive a resync."""
        sync_account_transactions(account_id='acc-1', connection=connection, client=provider)
        Transaction.objects.filter(external_id='tx-1').update(
            category=restaurants, is_validated=True, ai_confidence=1.0,
        )

        sync_account_transactions(account_id='acc-1', connection=connection, client=provider)

        expense = Transaction.objects.get(external_id='tx-1')
        assert expense.category == restaurants
        assert expense.is_validated is True
        assert expense.ai_confidence == 1.0

    def test_bad_transaction_does_not_stop_others(self, comum, provider, connection, booked):
        """One bad transaction is reported, not fatal."""
        provider.get_transactions.return_value = [
            booked('tx-1', '-42.50'),
            booked('tx-bad', 'oops'),
            booked('tx-3', '-9.99', description='Spotify'),
        ]

        result = sync_account_transactions(account_id='acc-1', connection=connection, client=provider)

        assert result['processed'] == 3
        assert result['created'] == 2
        assert len(result['errors']) == 1
        assert result['errors'][0].startswith('Transaction tx-bad:')
        assert not Transaction.objects.filter(external_id='tx-bad').exists()

    def test_provider_failure_is_reported(self, comum, provider, connection):
        """Provider errors are reported in the result."""
        provider.get_transactions.side_effect = BankingProviderError('GoCardless GET returned 429', status_code=429)

        result = sync_account_transactions(account_id='acc-1', connection=connection, client=provider)

        assert result['processed'] == 0
        assert result['errors'] == ['Account acc-1: GoCardless GET returned 429']
        assert Transaction.objects.count() == 0

    def test_without_connection_uses_account_institution(self, comum, provider):
        """The account metadata names the bank."""
        sync_account_transactions(account_id='acc-1', client=provider)

        assert Bank.objects.filter(name='ACTIVOBANK_ACTVPTPL').exists()


@pytest.mark.django_db
class TestSyncAllAccounts:

    def test_aggregates_linked_accounts(self, comum, groceries, provider, connection, pending_connection, user):
        """Totals cover every linked account."""
        BankConnection.objects.create(
            user=user,
            requisition_id='req-3',
            institution_id='CGD_CGDIPTPL',
            institution_name='CGD',
            reference='user_1_1709660000000',
            status=RequisitionStatus.LINKED,
            account_ids=['acc-2', 'acc-3'],
        )

        with patch(CATEGORIZE, return_value=suggestion(groceries)):
            result = sync_all_accounts(client=provider)

        assert result['accounts_processed'] == 3
        assert result['total_transactions'] == 6
        # the double returns the same two transactions for every account
        assert result['created'] == 2
        assert result['updated'] == 4
        assert result['errors'] == []

    def test_no_linked_accounts(self, provider, pending_connection):
        """No linked accounts gives zero totals."""
        result = sync_all_accounts(client=provider)

        assert result == {
            'accounts_processed': 0, 'total_transactions': 0, 'created': 0, 'updated': 0, 'errors': [],
        }
        provider.get_transactions.assert_not_called()


class TestAccountSummary:

    def test_summary(self, provider, booked):
        """Summary has recent transactions and a count."""
        provider.get_transactions.return_value = [booked(f'tx-{i}', '-1.00') for i in range(12)]

        summary = account_summary(account_id='acc-1', client=provider)

        assert summary['account']['iban'] == 'PT50000201231234567890154'
        assert summary['account']['details'] == {'currency': 'EUR', 'ownerName': 'Joana Silva'}
        assert summary['balances'][0]['balanceType'] == 'interimAvailable'
        assert len(summary['recent_transactions']) == 10
        assert summary['transaction_count'] == 12
