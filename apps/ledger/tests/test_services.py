import pytest
from io import StringIO
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from django.core.management import call_command

from apps.ledger.models import (
    AuditLog,
    AuditAction,
    Category,
    Origin,
    Transaction,
    TransactionFlow,
    MajorCategory,
    Month,
    UNKNOWN_CATEGORY_NAME,
)
from apps.ledger.services import (
    create_transaction,
    update_transaction,
    delete_transaction,
    validate_transaction,
    bulk_create_transactions,
    bulk_update_transactions,
    bulk_delete_transactions,
    search_transactions,
    seed_reference_data,
    category_hierarchy,
    get_or_create_origin,
    record_audit,
    DEFAULT_BANKS,
    InvalidTransactionError,
    TransactionNotFoundError,
    BulkOperationError,
)
from apps.ledger.management.commands.seed_reference_data import month_start


# =============================================================================
# Model behaviour
# =============================================================================

@pytest.mark.django_db
class TestTransactionModel:

    def test_month_and_year_derived_from_date(self, expense):
        """Saving derives the Portuguese month name and year."""
        assert expense.month == Month.MARCH
        assert expense.month == 'MARCO'
        assert expense.year == 2024

    def test_amount_follows_flow(self, expense, income):
        """amount reads the ledger side that matches the flow."""
        assert expense.amount == Decimal('54.30')
        assert expense.signed_amount == Decimal('-54.30')
        assert income.amount == Decimal('2500.00')

    def test_unknown_category_per_flow(self, db):
        """The catch-all category is created once per flow."""
        expense_unknown = Category.objects.unknown(TransactionFlow.EXPENSE)
        again = Category.objects.unknown(TransactionFlow.EXPENSE)
        income_unknown = Category.objects.unknown(TransactionFlow.INCOME)

        assert expense_unknown == again
        assert expense_unknown.is_unknown
        assert expense_unknown.major_category == MajorCategory.VARIABLE_COSTS
        assert income_unknown.major_category == MajorCategory.EXTRA_INCOME

    def test_audit_record_skips_anonymous_user(self, db):
        """Anonymous users are not stored on audit rows."""
        from django.contrib.auth.models import AnonymousUser

        log = AuditLog.objects.record(
            table_name='sync_jobs',
            record_id='daily-sync',
            action=AuditAction.SYNC_COMPLETED,
            user=AnonymousUser(),
        )
        assert log.user is None
        assert log.record_id == 'daily-sync'


# =============================================================================
# Transaction management
# =============================================================================

@pytest.mark.django_db
class TestCreateTransaction:

    def test_create_expense(self, origin, bank, supermarket, user):
        """Creating an expense stores it and writes a CREATE audit row."""
        txn = create_transaction(
            date=date(2024, 1, 10),
            origin=origin,
            bank=bank,
            flow=TransactionFlow.EXPENSE,
            category=supermarket,
            description='Lidl',
            outgoings=Decimal('23.10'),
            created_by=user,
        )

        assert txn.month == Month.JANUARY
        assert AuditLog.objects.filter(
            table_name='transactions',
            record_id=str(txn.id),
            action=AuditAction.CREATE,
        ).exists()

    def test_expense_requires_outgoings(self, origin, bank, supermarket):
        """SAIDA without outgoings is rejected."""
        with pytest.raises(InvalidTransactionError):
            create_transaction(
                date=date(2024, 1, 10),
                origin=origin,
                bank=bank,
                flow=TransactionFlow.EXPENSE,
                category=supermarket,
                description='Lidl',
                incomes=Decimal('23.10'),
            )

    def test_income_requires_positive_incomes(self, origin, bank, salary):
        """ENTRADA with a zero amount is rejected."""
        with pytest.raises(InvalidTransactionError):
            create_transaction(
                date=date(2024, 1, 10),
                origin=origin,
                bank=bank,
                flow=TransactionFlow.INCOME,
                category=salary,
                description='Salario',
                incomes=Decimal('0'),
            )

    def test_category_flow_must_match(self, origin, bank, salary):
        """An expense cannot use an income category."""
        with pytest.raises(InvalidTransactionError, match='belongs to'):
            create_transaction(
                date=date(2024, 1, 10),
                origin=origin,
                bank=bank,
                flow=TransactionFlow.EXPENSE,
                category=salary,
                description='Wrong',
                outgoings=Decimal('10.00'),
            )

    def test_year_out_of_range(self, origin, bank, supermarket):
        """Dates outside 2020..2030 are rejected."""
        with pytest.raises(InvalidTransactionError, match='Year'):
            create_transaction(
                date=date(2019, 12, 31),
                origin=origin,
                bank=bank,
                flow=TransactionFlow.EXPENSE,
                category=supermarket,
                description='Old',
                outgoings=Decimal('10.00'),
            )


@pytest.mark.django_db
class TestUpdateTransaction:

    def test_date_change_recomputes_period(self, expense):
        """Moving the date updates month and year."""
        txn = update_transaction(transaction_id=expense.id, data={'date': date(2025, 12, 24)})

        txn.refresh_from_db()
        assert txn.month == Month.DECEMBER
        assert txn.year == 2025

    def test_flow_switch_clears_other_side(self, expense, salary):
        """Turning an expense into income drops outgoings."""
        txn = update_transaction(
            transaction_id=expense.id,
            data={'flow': TransactionFlow.INCOME, 'category': salary, 'incomes': Decimal('54.30')},
        )

        assert txn.outgoings is None
        assert txn.incomes == Decimal('54.30')

    def test_update_writes_old_and_new_values(self, expense, user):
        """UPDATE audit rows carry before/after snapshots."""
        update_transaction(transaction_id=expense.id, data={'description': 'Continente Amoreiras'}, user=user)

        log = AuditLog.objects.get(action=AuditAction.UPDATE, record_id=str(expense.id))
        assert log.old_values['description'] == 'Continente compras'
        assert log.new_values['description'] == 'Continente Amoreiras'
        assert log.user == user

    def test_update_missing(self, db):
        """Unknown ids raise TransactionNotFoundError."""
        import uuid

        with pytest.raises(TransactionNotFoundError):
            update_transaction(transaction_id=uuid.uuid4(), data={'description': 'x'})

    def test_category_change_on_ai_transaction_feeds_categorizer(self, ai_expense, supermarket, user):
        """Correcting an AI category notifies the categorizer."""
        with patch('apps.assistant.services.learn_from_correction') as learn:
            update_transaction(transaction_id=ai_expense.id, data={'category': supermarket}, user=user)

        learn.assert_called_once()
        kwargs = learn.call_args.kwargs
        assert kwargs['corrected_category'] == supermarket
        assert kwargs['original_category'].sub_category == 'Refeições fora de casa'

    def test_category_change_on_manual_transaction_is_silent(self, expense, restaurants):
        """Manual transactions do not produce learning feedback."""
        with patch('apps.assistant.services.learn_from_correction') as learn:
            update_transaction(transaction_id=expense.id, data={'category': restaurants})

        learn.assert_not_called()


@pytest.mark.django_db
class TestValidateTransaction:

    def test_validate_marks_reviewed(self, expense):
        txn = validate_transaction(transaction_id=expense.id)
        assert txn.is_validated is True

    def test_validate_with_correction(self, ai_expense, supermarket, user):
        """Validating with a new category applies it and records feedback."""
        with patch('apps.assistant.services.learn_from_correction') as learn:
            txn = validate_transaction(transaction_id=ai_expense.id, category=supermarket, user=user)

        assert txn.is_validated is True
        assert txn.category == supermarket
        learn.assert_called_once()

    def test_validate_same_category_no_feedback(self, ai_expense):
        with patch('apps.assistant.services.learn_from_correction') as learn:
            validate_transaction(transaction_id=ai_expense.id, category=ai_expense.category)

        learn.assert_not_called()


@pytest.mark.django_db
class TestDeleteTransaction:

    def test_delete_keeps_audit_snapshot(self, expense):
        txn_id = expense.id
        delete_transaction(transaction_id=txn_id)

        assert not Transaction.objects.filter(id=txn_id).exists()
        log = AuditLog.objects.get(action=AuditAction.DELETE, record_id=str(txn_id))
        assert log.old_values['outgoings'] == '54.30'


# =============================================================================
# Bulk operations
# =============================================================================

@pytest.mark.django_db
class TestBulkOperations:

    def test_bulk_create(self, origin, bank, supermarket, user):
        items = [
            {
                'date': date(2024, 2, day),
                'origin': origin,
                'bank': bank,
                'flow': TransactionFlow.EXPENSE,
                'category': supermarket,
                'description': f'Compra {day}',
                'outgoings': Decimal('10.00'),
            }
            for day in (1, 2, 3)
        ]

        created = bulk_create_transactions(items=items, created_by=user)

        assert len(created) == 3
        assert Transaction.objects.count() == 3

    def test_bulk_create_is_all_or_nothing(self, origin, bank, supermarket):
        """One invalid item rolls back the whole batch."""
        items = [
            {
                'date': date(2024, 2, 1),
                'origin': origin,
                'bank': bank,
                'flow': TransactionFlow.EXPENSE,
                'category': supermarket,
                'description': 'ok',
                'outgoings': Decimal('10.00'),
            },
            {
                'date': date(2024, 2, 2),
                'origin': origin,
                'bank': bank,
                'flow': TransactionFlow.EXPENSE,
                'category': supermarket,
                'description': 'broken',
            },
        ]

        with pytest.raises(InvalidTransactionError):
            bulk_create_transactions(items=items)

        assert Transaction.objects.count() == 0

    def test_bulk_update_reports_count(self, expense, ai_expense):
        count = bulk_update_transactions(
            ids=[expense.id, ai_expense.id],
            updates={'is_validated': True},
        )

        assert count == 2
        assert Transaction.objects.filter(is_validated=True).count() == 2

    def test_bulk_update_rejects_unknown_fields(self, expense):
        with pytest.raises(BulkOperationError, match='external_id'):
            bulk_update_transactions(ids=[expense.id], updates={'external_id': 'x'})

    def test_bulk_delete(self, expense, income):
        count = bulk_delete_transactions(ids=[expense.id, income.id])

        assert count == 2
        assert AuditLog.objects.filter(action=AuditAction.DELETE).count() == 2

    def test_bulk_delete_requires_ids(self, db):
        with pytest.raises(BulkOperationError):
            bulk_delete_transactions(ids=[])


# =============================================================================
# Search
# =============================================================================

@pytest.mark.django_db
class TestSearchTransactions:

    def test_amount_filter_matches_either_side(self, expense, income, ai_expense):
        """min_amount applies to incomes or outgoings."""
        results = list(search_transactions(min_amount=Decimal('100')))

        assert income in results
        assert ai_expense in results
        assert expense not in results

    def test_date_and_flow_filters(self, expense, income, ai_expense):
        results = list(search_transactions(
            date_from=date(2024, 3, 1),
            date_to=date(2024, 3, 31),
            flow=TransactionFlow.EXPENSE,
        ))
        assert results == [expense]

    def test_major_category_filter(self, expense, ai_expense):
        results = list(search_transactions(major_category=MajorCategory.VARIABLE_COSTS))
        assert results == [ai_expense]

    def test_description_contains(self, expense, ai_expense):
        results = list(search_transactions(description='pingo'))
        assert results == [ai_expense]

    def test_sorting(self, expense, income, ai_expense):
        results = list(search_transactions(sort_by='date', sort_order='asc'))
        assert results == [income, expense, ai_expense]

    def test_default_ordering_newest_first(self, expense, income, ai_expense):
        results = list(search_transactions())
        assert results[0] == ai_expense


# =============================================================================
# Reference data
# =============================================================================

@pytest.mark.django_db
class TestReferenceData:

    def test_seed_is_idempotent(self):
        first = seed_reference_data()
        second = seed_reference_data()

        assert first['origins'] == 3
        assert first['banks'] == len(DEFAULT_BANKS)
        assert first['categories'] > 50
        assert second == {'origins': 0, 'banks': 0, 'categories': 0}

    @pytest.mark.parametrize('day, months_back, expected', [
        (date(2024, 3, 1), 1, date(2024, 2, 1)),
        (date(2024, 3, 31), 2, date(2024, 1, 1)),
        (date(2024, 1, 15), 2, date(2023, 11, 1)),
        (date(2024, 5, 20), 0, date(2024, 5, 1)),
    ])
    def test_month_start(self, day, months_back, expected):
        assert month_start(day, months_back) == expected

    def test_sample_covers_three_consecutive_months(self):
        call_command('seed_reference_data', '--sample', stdout=StringIO())

        salaries = Transaction.objects.filter(description='[sample] Salario mensal')
        months = sorted(salaries.values_list('date', flat=True))
        assert months == [month_start(date.today(), n) for n in (2, 1, 0)]

    def test_seed_includes_unknown_categories(self):
        seed_reference_data()

        assert Category.objects.filter(
            category=UNKNOWN_CATEGORY_NAME,
            sub_category=UNKNOWN_CATEGORY_NAME,
        ).count() == 2

    def test_hierarchy_groups_by_major(self, supermarket, restaurants, salary):
        tree = category_hierarchy(flow=TransactionFlow.EXPENSE)

        majors = {node['major_category'] for node in tree}
        assert majors == {MajorCategory.FIXED_COSTS, MajorCategory.VARIABLE_COSTS}
        fixed = next(n for n in tree if n['major_category'] == MajorCategory.FIXED_COSTS)
        assert fixed['categories'][0]['name'] == 'Alimentação'
        assert fixed['categories'][0]['sub_categories'][0]['name'] == 'Supermercado'

    def test_get_or_create_origin_case_insensitive(self, origin):
        assert get_or_create_origin('comum') == origin
        assert get_or_create_origin('Joana').name == 'Joana'
        assert Origin.objects.count() == 2

    def test_record_audit_stringifies_id(self, expense):
        log = record_audit(
            table_name='transactions',
            record_id=expense.id,
            action=AuditAction.UPDATE,
        )
        assert log.record_id == str(expense.id)
