from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
import uuid

from apps.ledger.models import Category, Month, MIN_YEAR, MAX_YEAR


class Budget(models.Model):
    """Spending limit for one category over a month, or a whole year when month is empty."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='budgets')
    year = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_YEAR), MaxValueValidator(MAX_YEAR)]
    )
    month = models.CharField(max_length=10, choices=Month.choices, null=True, blank=True)
    amount_limit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='budgets_created'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'budgets'
        ordering = ['-year', 'month', 'category__category']
        constraints = [
            models.UniqueConstraint(
                fields=['category', 'year', 'month'],
                name='unique_budget_per_period',
            ),
        ]
        indexes = [
            models.Index(fields=['year', 'month'], name='budgets_period_idx'),
        ]

    def __str__(self):
        period = f"{self.month} {self.year}" if self.month else str(self.year)
        return f"{self.category} ({period}): {self.amount_limit} EUR"

    @property
    def is_yearly(self):
        return self.month is None


class GoalType(models.TextChoices):
    SAVINGS = 'savings', 'Savings'
    SPENDING_LIMIT = 'spending_limit', 'Spending limit'
    INVESTMENT = 'investment', 'Investment'
    DEBT_REDUCTION = 'debt_reduction', 'Debt reduction'
    EMERGENCY_FUND = 'emergency_fund', 'Emergency fund'


class GoalStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    PAUSED = 'paused', 'Paused'
    FAILED = 'failed', 'Failed'


class GoalPeriod(models.TextChoices):
    MONTHLY = 'monthly', 'Monthly'
    QUARTERLY = 'quarterly', 'Quarterly'
    YEARLY = 'yearly', 'Yearly'
    ONE_TIME = 'one_time', 'One time'


class GoalPriority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'


PRIORITY_RANK = {
    GoalPriority.HIGH: 3,
    GoalPriority.MEDIUM: 2,
    GoalPriority.LOW: 1,
}


class GoalQuerySet(models.QuerySet):

    def by_priority(self):
        """High priority first, then nearest target date."""
        rank = models.Case(
            *[models.When(priority=priority, then=models.Value(value)) for priority, value in PRIORITY_RANK.items()],
            default=models.Value(0),
            output_field=models.IntegerField(),
        )
        return self.annotate(priority_rank=rank).order_by('-priority_rank', 'target_date')


class Goal(models.Model):
    """A financial goal owned by one family member."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='goals'
    )

    title = models.CharField(max_length=100)
    description = models.TextField(max_length=1000, blank=True)
    goal_type = models.CharField(max_length=20, choices=GoalType.choices)
    status = models.CharField(max_length=20, choices=GoalStatus.choices, default=GoalStatus.ACTIVE)
    period = models.CharField(max_length=20, choices=GoalPeriod.choices, default=GoalPeriod.ONE_TIME)

    target_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    current_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    start_date = models.DateField()
    target_date = models.DateField()
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='goals'
    )
    priority = models.CharField(max_length=10, choices=GoalPriority.choices, default=GoalPriority.MEDIUM)
    is_recurring = models.BooleanField(default=False)
    notifications = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = GoalQuerySet.as_manager()

    class Meta:
        db_table = 'goals'
        ordering = ['target_date']
        indexes = [
            models.Index(fields=['owner', 'status'], name='goals_owner_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.current_amount}/{self.target_amount} EUR)"

    def clean(self):
        if self.start_date and self.target_date and self.target_date <= self.start_date:
            raise ValidationError({'target_date': 'Target date must be after start date'})
