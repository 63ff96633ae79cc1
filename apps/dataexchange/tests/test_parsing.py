import pytest
from datetime import date, datetime
from decimal import Decimal
from apps.ledger.models import MajorCategory, TransactionFlow
from apps.dataexchange.services import (
    normalize_flow,
    normalize_major_category,
    parse_date,
    parse_amount,
)


class TestNormalizeFlow:

    @pytest.mark.parametrize('value,expected', [
        ('ENTRADA', TransactionFlow.INCOME),
        ('income', TransactionFlow.INCOME),
        (' Saída ', TransactionFlow.EXPENSE),
        ('SAIDA', TransactionFlow.EXPENSE),
        ('expense', TransactionFlow.EXPENSE),
        ('transfer', None),
        ('', None),
    ])
    def test_flow(self, value, expected):
        """Portuguese and English flow names map to ENTRADA/SAIDA."""
        assert normalize_flow(value) == expected


class TestNormalizeMajorCategory:

    @pytest.mark.parametrize('value,expected', [
        ('CUSTOS_FIXOS', MajorCategory.FIXED_COSTS),
        ('custos variáveis', MajorCategory.VARIABLE_COSTS),
        ('Economia e Investimentos', MajorCategory.SAVINGS_INVESTMENTS),
        ('fixed costs', MajorCategory.FIXED_COSTS),
        ('gastos sem culpa', MajorCategory.GUILT_FREE),
        ('lazer', None),
    ])
    def test_major_category(self, value, expected):
        """Accents, spacing and enum names are tolerated."""
        assert normalize_major_category(value) == expected


class TestParseDate:

    @pytest.mark.parametrize('value', [
        '2024-01-15',
        '15/01/2024',
        '15-01-2024',
        45306,
        45306.0,
        '45306',
        datetime(2024, 1, 15, 0, 0),
        date(2024, 1, 15),
    ])
    def test_formats(self, value):
        """Every accepted date shape reads as 15 January 2024."""
        assert parse_date(value) == date(2024, 1, 15)

    @pytest.mark.parametrize('value', ['', '2024/13/45', 'ontem', None])
    def test_invalid(self, value):
        """Unparseable dates give None."""
        assert parse_date(value) is None


class TestParseAmount:

    @pytest.mark.parametrize('value,expected', [
        ('1.234,56', Decimal('1234.56')),
        ('1,234.56', Decimal('1234.56')),
        ('85,5', Decimal('85.50')),
        (85.5, Decimal('85.50')),
        (2500, Decimal('2500.00')),
        ('€ 12', Decimal('12.00')),
    ])
    def test_amounts(self, value, expected):
        """European and English separators are both understood."""
        assert parse_amount(value) == expected

    @pytest.mark.parametrize('value', ['', 'abc', None, 'NaN', 'sNaN', 'inf', '-Infinity', '12345678901.00'])
    def test_invalid(self, value):
        """Non-numeric, non-finite and oversized amounts give None."""
        assert parse_amount(value) is None

    def test_largest_amount(self):
        assert parse_amount('9.999.999.999,99') == Decimal('9999999999.99')
