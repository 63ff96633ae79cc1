"""
Management command to load default reference data.

Usage:
    python manage.py seed_reference_data
    python manage.py seed_reference_data --sample

This creates:
- Origins (Comum, Joana, Diogo)
- Banks
- The category hierarchy, including Desconhecido/Desconhecido per flow
- With --sample: three months of example transactions
"""

from datetime import date, timedelta
from decimal import Decimal
import random

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.ledger.models import Origin, Bank, Category, Transaction, TransactionFlow
from apps.ledger.services import seed_reference_data, create_transaction, DEFAULT_ORIGIN


SAMPLE_EXPENSES = [
    ('Alimentação', 'Supermercado', 'Continente compras semana', (40, 160)),
    ('Transportes', 'Carro Combustivel', 'Galp combustivel', (50, 90)),
    ('Casa', 'Electricidade', 'EDP fatura', (45, 110)),
    ('Subscrições', 'Spotify', 'Spotify Premium', (10, 17)),
    ('Saúde', 'Medicamentos Adulto', 'Farmacia', (5, 40)),
    ('Lazer', 'Date Night', 'Jantar restaurante', (30, 80)),
]


def month_start(day, months_back):
    """First day of the month ``months_back`` months before ``day``'s month."""
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


class Command(BaseCommand):
    help = 'Load default origins, banks and categories'

    def add_arguments(self, parser):
        parser.add_argument(
            '--sample',
            action='store_true',
            help='Also create example transactions for the last three months',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Loading reference data...')
        created = seed_reference_data()
        self.stdout.write(
            f"  Origins: {created['origins']}, banks: {created['banks']}, "
            f"categories: {created['categories']} created"
        )

        if options['sample']:
            count = self.create_sample_transactions()
            self.stdout.write(f'  Sample transactions: {count} created')

        self.stdout.write(self.style.SUCCESS('Reference data ready.'))

    def create_sample_transactions(self):
        origin = Origin.objects.get(name=DEFAULT_ORIGIN)
        bank = Bank.objects.order_by('name').first()
        salary = Category.objects.get(
            flow=TransactionFlow.INCOME, category='Salario', sub_category='Salario Liq.'
        )

        today = date.today()
        count = 0

        if Transaction.objects.filter(description__startswith='[sample]').exists():
            return count

        for months_back in range(3):
            first_day = month_start(today, months_back)

            create_transaction(
                date=first_day,
                origin=origin,
                bank=bank,
                flow=TransactionFlow.INCOME,
                category=salary,
                description='[sample] Salario mensal',
                incomes=Decimal('2500.00'),
            )
            count += 1

            for category_name, sub_category, description, (low, high) in SAMPLE_EXPENSES:
                category = Category.objects.filter(
                    flow=TransactionFlow.EXPENSE,
                    category=category_name,
                    sub_category=sub_category,
                ).first()
                if category is None:
                    continue

                create_transaction(
                    date=first_day + timedelta(days=random.randint(1, 25)),
                    origin=origin,
                    bank=bank,
                    flow=TransactionFlow.EXPENSE,
                    category=category,
                    description=f'[sample] {description}',
                    outgoings=Decimal(random.randint(low * 100, high * 100)) / 100,
                )
                count += 1

        return count
