# Generated manually for the ledger app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import migrations, models
import django.db.models.deletion


FLOW_CHOICES = [('ENTRADA', 'Income'), ('SAIDA', 'Expense')]

MAJOR_CATEGORY_CHOICES = [
    ('RENDIMENTO', 'Income'),
    ('RENDIMENTO_EXTRA', 'Extra income'),
    ('ECONOMIA_INVESTIMENTOS', 'Savings & investments'),
    ('CUSTOS_FIXOS', 'Fixed costs'),
    ('CUSTOS_VARIAVEIS', 'Variable costs'),
    ('GASTOS_SEM_CULPA', 'Guilt-free spending'),
]

MONTH_CHOICES = [
    ('JANEIRO', 'January'), ('FEVEREIRO', 'February'), ('MARCO', 'March'),
    ('ABRIL', 'April'), ('MAIO', 'May'), ('JUNHO', 'June'),
    ('JULHO', 'July'), ('AGOSTO', 'August'), ('SETEMBRO', 'September'),
    ('OUTUBRO', 'October'), ('NOVEMBRO', 'November'), ('DEZEMBRO', 'December'),
]

AUDIT_ACTION_CHOICES = [
    ('CREATE', 'Create'),
    ('UPDATE', 'Update'),
    ('DELETE', 'Delete'),
    ('CORRECTION', 'Categorization correction'),
    ('SYNC_COMPLETED', 'Sync completed'),
    ('SYNC_ERROR', 'Sync error'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Origin',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=50, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'origins',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Bank',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'banks',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('flow', models.CharField(choices=FLOW_CHOICES, max_length=10)),
                ('major_category', models.CharField(choices=MAJOR_CATEGORY_CHOICES, max_length=30)),
                ('category', models.CharField(max_length=100)),
                ('sub_category', models.CharField(max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'categories',
                'ordering': ['flow', 'major_category', 'category', 'sub_category'],
                'indexes': [
                    models.Index(fields=['flow', 'major_category'], name='categories_flow_major_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('flow', 'major_category', 'category', 'sub_category'), name='unique_category_path'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('flow', models.CharField(choices=FLOW_CHOICES, max_length=10)),
                ('description', models.CharField(max_length=500)),
                ('incomes', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[MinValueValidator(Decimal('0.01'))])),
                ('outgoings', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[MinValueValidator(Decimal('0.01'))])),
                ('notes', models.TextField(blank=True, max_length=1000, null=True)),
                ('month', models.CharField(choices=MONTH_CHOICES, max_length=10)),
                ('year', models.PositiveSmallIntegerField(validators=[MinValueValidator(2020), MaxValueValidator(2030)])),
                ('external_id', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('raw_data', models.JSONField(blank=True, null=True)),
                ('ai_confidence', models.FloatField(blank=True, null=True, validators=[MinValueValidator(0.0), MaxValueValidator(1.0)])),
                ('is_ai_generated', models.BooleanField(default=False)),
                ('is_validated', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('bank', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='ledger.bank')),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='ledger.category')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions_created', to=settings.AUTH_USER_MODEL)),
                ('origin', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='ledger.origin')),
            ],
            options={
                'db_table': 'transactions',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['date'], name='transactions_date_idx'),
                    models.Index(fields=['year', 'month'], name='transactions_period_idx'),
                    models.Index(fields=['flow', 'date'], name='transactions_flow_date_idx'),
                    models.Index(fields=['category', 'date'], name='transactions_cat_date_idx'),
                    models.Index(fields=['origin', 'date'], name='transactions_origin_date_idx'),
                    models.Index(fields=['is_validated'], name='transactions_validated_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('table_name', models.CharField(max_length=50)),
                ('record_id', models.CharField(max_length=100)),
                ('action', models.CharField(choices=AUDIT_ACTION_CHOICES, max_length=20)),
                ('old_values', models.JSONField(blank=True, null=True)),
                ('new_values', models.JSONField(blank=True, null=True)),
                ('timestamp', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['table_name', 'action', 'timestamp'], name='audit_table_action_idx'),
                    models.Index(fields=['table_name', 'record_id'], name='audit_record_idx'),
                ],
            },
        ),
    ]
