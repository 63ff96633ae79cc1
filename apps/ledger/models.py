from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
import uuid


class TransactionFlow(models.TextChoices):
    INCOME = 'ENTRADA', 'Income'
    EXPENSE = 'SAIDA', 'Expense'


class MajorCategory(models.TextChoices):
    INCOME = 'RENDIMENTO', 'Income'
    EXTRA_INCOME = 'RENDIMENTO_EXTRA', 'Extra income'
    SAVINGS_INVESTMENTS = 'ECONOMIA_INVESTIMENTOS', 'Savings & investments'
    FIXED_COSTS = 'CUSTOS_FIXOS', 'Fixed costs'
    VARIABLE_COSTS = 'CUSTOS_VARIAVEIS', 'Variable costs'
    GUILT_FREE = 'GASTOS_SEM_CULPA', 'Guilt-free spending'


class Month(models.TextChoices):
    JANUARY = 'JANEIRO', 'January'
    FEBRUARY = 'FEVEREIRO', 'February'
    MARCH = 'MARCO', 'March'
    APRIL = 'ABRIL', 'April'
    MAY = 'MAIO', 'May'
    JUNE = 'JUNHO', 'June'
    JULY = 'JULHO', 'July'
    AUGUST = 'AGOSTO', 'August'
    SEPTEMBER = 'SETEMBRO', 'September'
    OCTOBER = 'OUTUBRO', 'October'
    NOVEMBER = 'NOVEMBRO', 'November'
    DECEMBER = 'DEZEMBRO', 'December'

    @classmethod
    def from_date(cls, value):
        return list(cls)[value.month - 1]


# Catch-all category used when nothing better is known
UNKNOWN_CATEGORY_NAME = 'Desconhecido'

MIN_YEAR = 2020
MAX_YEAR = 2030


class Origin(models.Model):
    """Whose money a transaction belongs to (e.g. a family member or the joint account)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'origins'
        ordering = ['name']

    def __str__(self):
        return self.name


class Bank(models.Model):
    """Institution or wallet where the money moved."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'banks'
        ordering = ['name']

    def __str__(self):
        return self.name


class CategoryManager(models.Manager):

    def unknown(self, flow):
        """Return the catch-all category for a flow, creating it if needed."""
        major = (
            MajorCategory.EXTRA_INCOME if flow == TransactionFlow.INCOME
            else MajorCategory.VARIABLE_COSTS
        )
        category, _ = self.get_or_create(
            flow=flow,
            major_category=major,
            category=UNKNOWN_CATEGORY_NAME,
            sub_category=UNKNOWN_CATEGORY_NAME,
        )
        return category


class Category(models.Model):
    """Leaf of the flow → major category → category → sub-category hierarchy."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    flow = models.CharField(max_length=10, choices=TransactionFlow.choices)
    major_category = models.CharField(max_length=30, choices=MajorCategory.choices)
    category = models.CharField(max_length=100)
    sub_category = models.CharField(max_length=100)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CategoryManager()

    class Meta:
        db_table = 'categories'
        ordering = ['flow', 'major_category', 'category', 'sub_category']
        constraints = [
            models.UniqueConstraint(
                fields=['flow', 'major_category', 'category', 'sub_category'],
                name='unique_category_path',
            ),
        ]
        indexes = [
            models.Index(fields=['flow', 'major_category'], name='categories_flow_major_idx'),
        ]

    def __str__(self):
        return f"{self.category} / {self.sub_category}"

    @property
    def is_unknown(self):
        return self.category == UNKNOWN_CATEGORY_NAME


class Transaction(models.Model):
    """A single income or expense line of the family ledger."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    date = models.DateField()
    origin = models.ForeignKey(Origin, on_delete=models.PROTECT, related_name='transactions')
    bank = models.ForeignKey(Bank, on_delete=models.PROTECT, related_name='transactions')
    flow = models.CharField(max_length=10, choices=TransactionFlow.choices)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='transactions')

    description = models.CharField(max_length=500)
    incomes = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    outgoings = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    notes = models.TextField(max_length=1000, blank=True, null=True)

    # Derived from date
    month = models.CharField(max_length=10, choices=Month.choices)
    year = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_YEAR), MaxValueValidator(MAX_YEAR)]
    )

    # Bank sync
    external_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    raw_data = models.JSONField(null=True, blank=True)

    # AI categorization
    ai_confidence = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0.0), MaxValueValidator(1.0)]
    )
    is_ai_generated = models.BooleanField(default=False)
    is_validated = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions_created'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transactions'
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['date'], name='transactions_date_idx'),
            models.Index(fields=['year', 'month'], name='transactions_period_idx'),
            models.Index(fields=['flow', 'date'], name='transactions_flow_date_idx'),
            models.Index(fields=['category', 'date'], name='transactions_cat_date_idx'),
            models.Index(fields=['origin', 'date'], name='transactions_origin_date_idx'),
            models.Index(fields=['is_validated'], name='transactions_validated_idx'),
        ]

    def __str__(self):
        return f"{self.date} {self.description} ({self.amount} EUR)"

    def save(self, *args, **kwargs):
        self.sync_period()
        super().save(*args, **kwargs)

    def sync_period(self):
        """Derive month and year from date."""
        if self.date:
            self.month = Month.from_date(self.date)
            self.year = self.date.year

    @property
    def amount(self):
        """Positive amount on the side matching the flow."""
        if self.flow == TransactionFlow.INCOME:
            return self.incomes or Decimal('0.00')
        return self.outgoings or Decimal('0.00')

    @property
    def signed_amount(self):
        return self.amount if self.flow == TransactionFlow.INCOME else -self.amount


class AuditAction(models.TextChoices):
    CREATE = 'CREATE', 'Create'
    UPDATE = 'UPDATE', 'Update'
    DELETE = 'DELETE', 'Delete'
    CORRECTION = 'CORRECTION', 'Categorization correction'
    SYNC_COMPLETED = 'SYNC_COMPLETED', 'Sync completed'
    SYNC_ERROR = 'SYNC_ERROR', 'Sync error'


class AuditLogManager(models.Manager):

    def record(self, *, table_name, record_id, action, old_values=None, new_values=None, user=None):
        return self.create(
            table_name=table_name,
            record_id=str(record_id),
            action=action,
            old_values=old_values,
            new_values=new_values,
            user=user if user is not None and user.is_authenticated else None,
        )


class AuditLog(models.Model):
    """Append-only record of changes and background job outcomes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    table_name = models.CharField(max_length=50)
    record_id = models.CharField(max_length=100)
    action = models.CharField(max_length=20, choices=AuditAction.choices)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AuditLogManager()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['table_name', 'action', 'timestamp'], name='audit_table_action_idx'),
            models.Index(fields=['table_name', 'record_id'], name='audit_record_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.table_name}:{self.record_id}"
