"""Goal CRUD. Goals are private to their owner."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User

from ..models import Goal
from .exceptions import GoalNotFoundError, InvalidGoalError

UPDATABLE_FIELDS = (
    'title',
    'description',
    'goal_type',
    'status',
    'period',
    'target_amount',
    'current_amount',
    'start_date',
    'target_date',
    'category',
    'priority',
    'is_recurring',
    'notifications',
)


def _check_goal_rules(goal: Goal) -> None:
    if goal.target_amount is None or goal.target_amount <= 0:
        raise InvalidGoalError("Target amount must be positive")
    if goal.target_date <= goal.start_date:
        raise InvalidGoalError("Target date must be after start date")


def list_goals(*, owner: User, status: Optional[str] = None, goal_type: Optional[str] = None) -> QuerySet:
    """Owner's goals, high priority first then nearest target date."""
    queryset = Goal.objects.filter(owner=owner).select_related('category')
    if status:
        queryset = queryset.filter(status=status)
    if goal_type:
        queryset = queryset.filter(goal_type=goal_type)
    return queryset.by_priority()


def get_goal(*, goal_id: UUID, owner: User) -> Goal:
    try:
        return Goal.objects.select_related('category').get(id=goal_id, owner=owner)
    except Goal.DoesNotExist:
        raise GoalNotFoundError(f"Goal with ID {goal_id} not found")


@transaction.atomic
def create_goal(
    *,
    owner: User,
    title: str,
    goal_type: str,
    target_amount: Decimal,
    start_date: date,
    target_date: date,
    **extra
) -> Goal:
    """
    Create a goal for its owner.

    Args:
        owner: Family member the goal belongs to
        title, goal_type, target_amount, start_date, target_date: Required fields
        **extra: Any of description, status, period, current_amount, category,
            priority, is_recurring, notifications

    Raises:
        InvalidGoalError: Non-positive target or target date not after start
    """
    unknown = set(extra) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidGoalError(f"Unknown goal fields: {', '.join(sorted(unknown))}")

    goal = Goal(
        owner=owner,
        title=title,
        goal_type=goal_type,
        target_amount=target_amount,
        start_date=start_date,
        target_date=target_date,
        **extra
    )
    _check_goal_rules(goal)
    goal.save()
    return goal


@transaction.atomic
def update_goal(*, goal_id: UUID, owner: User, data: dict) -> Goal:
    try:
        goal = Goal.objects.select_for_update().get(id=goal_id, owner=owner)
    except Goal.DoesNotExist:
        raise GoalNotFoundError(f"Goal with ID {goal_id} not found")

    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(goal, field, data[field])

    _check_goal_rules(goal)
    goal.save()
    return goal


@transaction.atomic
def delete_goal(*, goal_id: UUID, owner: User) -> None:
    deleted, _ = Goal.objects.filter(id=goal_id, owner=owner).delete()
    if not deleted:
        raise GoalNotFoundError(f"Goal with ID {goal_id} not found")
