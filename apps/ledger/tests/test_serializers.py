import pytest
from decimal import Decimal
from apps.ledger.serializers import (
    TransactionFilterSerializer,
    TransactionInputSerializer,
    BulkUpdateSerializer,
)
from apps.ledger.models import TransactionFlow


# =============================================================================
# TransactionFilterSerializer Tests
# =============================================================================

class TestTransactionFilterSerializer:
    """Tests for TransactionFilterSerializer input validation."""

    def test_empty_is_valid(self):
        """No filters at all is valid and defaults to descending order."""
        serializer = TransactionFilterSerializer(data={})

        assert serializer.is_valid()
        assert serializer.validated_data['sort_order'] == 'desc'
        assert serializer.validated_data['is_validated'] is None

    def test_invalid_flow(self):
        serializer = TransactionFilterSerializer(data={'flow': 'TRANSFER'})

        assert not serializer.is_valid()
        assert 'flow' in serializer.errors

    def test_invalid_sort_field(self):
        serializer = TransactionFilterSerializer(data={'sort_by': 'raw_data'})

        assert not serializer.is_valid()
        assert 'sort_by' in serializer.errors

    def test_year_bounds(self):
        assert not TransactionFilterSerializer(data={'year': 2019}).is_valid()
        assert TransactionFilterSerializer(data={'year': 2030}).is_valid()

    def test_amount_range(self):
        serializer = TransactionFilterSerializer(data={'min_amount': '10', 'max_amount': '10'})

        assert serializer.is_valid()
        assert serializer.validated_data['min_amount'] == Decimal('10')


# =============================================================================
# TransactionInputSerializer Tests
# =============================================================================

@pytest.mark.django_db
class TestTransactionInputSerializer:

    def _payload(self, origin, bank, category, **overrides):
        data = {
            'date': '2024-02-10',
            'origin': str(origin.id),
            'bank': str(bank.id),
            'flow': category.flow,
            'category': str(category.id),
            'description': 'Compra',
        }
        data.update(overrides)
        return data

    def test_valid_expense(self, origin, bank, supermarket):
        serializer = TransactionInputSerializer(
            data=self._payload(origin, bank, supermarket, outgoings='12.50')
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data['category'] == supermarket

    def test_category_flow_mismatch(self, origin, bank, salary):
        serializer = TransactionInputSerializer(
            data=self._payload(origin, bank, salary, flow=TransactionFlow.EXPENSE, outgoings='12.50')
        )

        assert not serializer.is_valid()
        assert 'category' in serializer.errors

    def test_negative_amount(self, origin, bank, supermarket):
        serializer = TransactionInputSerializer(
            data=self._payload(origin, bank, supermarket, outgoings='-3.00')
        )

        assert not serializer.is_valid()
        assert 'outgoings' in serializer.errors

    def test_empty_description(self, origin, bank, supermarket):
        serializer = TransactionInputSerializer(
            data=self._payload(origin, bank, supermarket, outgoings='3.00', description='')
        )

        assert not serializer.is_valid()
        assert 'description' in serializer.errors

    def test_partial_update_uses_instance(self, expense):
        """A partial update only needs the fields that change."""
        serializer = TransactionInputSerializer(expense, data={'notes': 'ok'}, partial=True)

        assert serializer.is_valid(), serializer.errors


@pytest.mark.django_db
class TestBulkUpdateSerializer:

    def test_updates_are_validated(self, expense):
        serializer = BulkUpdateSerializer(data={
            'ids': [str(expense.id)],
            'updates': {'outgoings': '-1'},
        })

        assert not serializer.is_valid()
        assert 'updates' in serializer.errors

    def test_is_validated_passthrough(self, expense):
        serializer = BulkUpdateSerializer(data={
            'ids': [str(expense.id)],
            'updates': {'is_validated': 'true'},
        })

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data['updates'] == {'is_validated': True}
