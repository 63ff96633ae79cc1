"""
Goal progress and insights.

Velocity is the amount saved per day since the start date; a goal is on
track while that velocity covers the daily amount still required.
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User

from ..models import Goal, GoalStatus, GoalType
from .exceptions import GoalNotFoundError, InvalidGoalError

logger = logging.getLogger(__name__)

MILESTONE_PERCENT = 75
AHEAD_FACTOR = Decimal('1.5')

INSIGHT_ORDER = {
    'achievement': 4,
    'warning': 3,
    'milestone': 2,
    'suggestion': 1,
}

CENT = Decimal('0.01')


def calculate_progress(goal: Goal, today: Optional[date] = None) -> dict:
    """
    Progress snapshot for a goal.

    Returns:
        Dict with goal_id, progress (0-100), amount_to_go, days_remaining,
        average_required (per day), velocity (per day), is_on_track and
        projected_completion (None when unknown or already reached)
    """
    today = today or timezone.localdate()

    current = min(goal.current_amount, goal.target_amount)
    progress = min(float(current / goal.target_amount * 100), 100.0)
    amount_to_go = max(goal.target_amount - current, Decimal('0.00'))

    days_remaining = max((goal.target_date - today).days, 0)
    average_required = amount_to_go / days_remaining if days_remaining > 0 else Decimal('0')

    days_since_start = max((today - goal.start_date).days, 1)
    velocity = goal.current_amount / days_since_start

    if days_remaining > 0:
        is_on_track = velocity >= average_required
    else:
        is_on_track = progress >= 100

    projected_completion = None
    if velocity > 0 and amount_to_go > 0:
        projected_completion = today + timedelta(days=math.ceil(amount_to_go / velocity))

    return {
        'goal_id': goal.id,
        'progress': round(progress, 2),
        'amount_to_go': amount_to_go,
        'days_remaining': days_remaining,
        'average_required': average_required.quantize(CENT),
        'velocity': velocity.quantize(CENT),
        'is_on_track': is_on_track,
        'projected_completion': projected_completion,
    }


def _insight(kind, title, description, goal, action=None):
    return {
        'type': kind,
        'title': title,
        'description': description,
        'goal_id': goal.id,
        'actionable': action is not None,
        'action': action,
    }


def goal_insights(*, owner: User, today: Optional[date] = None) -> list:
    """Achievements, milestones, warnings and suggestions for active goals."""
    insights = []

    for goal in Goal.objects.filter(owner=owner, status=GoalStatus.ACTIVE).by_priority():
        progress = calculate_progress(goal, today=today)
        percent = progress['progress']

        if percent >= 100:
            insights.append(_insight(
                'achievement',
                'Goal Completed!',
                f"Congratulations! You've completed your {goal.title} goal.",
                goal,
                action='Mark as completed',
            ))
        elif percent >= MILESTONE_PERCENT:
            insights.append(_insight(
                'milestone',
                'Almost There!',
                f"You're {percent:.0f}% complete with {goal.title}. Keep it up!",
                goal,
            ))
        elif not progress['is_on_track'] and progress['days_remaining'] > 0:
            insights.append(_insight(
                'warning',
                'Behind Schedule',
                f"{goal.title} needs €{progress['average_required']:.2f} daily to stay on track.",
                goal,
                action='Adjust goal or increase efforts',
            ))
        elif progress['days_remaining'] <= 0:
            insights.append(_insight(
                'warning',
                'Goal Overdue',
                f"{goal.title} target date has passed. Consider extending or adjusting the goal.",
                goal,
                action='Extend deadline or modify goal',
            ))

        if goal.goal_type == GoalType.SAVINGS and progress['velocity'] > progress['average_required'] * AHEAD_FACTOR:
            insights.append(_insight(
                'suggestion',
                'Ahead of Schedule',
                f"You're saving faster than needed for {goal.title}. "
                f"Consider increasing the target or starting a new goal.",
                goal,
                action='Increase target or create new goal',
            ))

    return sorted(insights, key=lambda item: INSIGHT_ORDER[item['type']], reverse=True)


@transaction.atomic
def update_goal_progress(*, goal_id: UUID, owner: User, amount: Decimal) -> Goal:
    """
    Set the saved amount of a goal.

    An active goal whose amount reaches the target is marked completed.
    """
    if amount < 0:
        raise InvalidGoalError("Amount cannot be negative")

    try:
        goal = Goal.objects.select_for_update().get(id=goal_id, owner=owner)
    except Goal.DoesNotExist:
        raise GoalNotFoundError(f"Goal with ID {goal_id} not found")

    goal.current_amount = amount
    if goal.current_amount >= goal.target_amount and goal.status == GoalStatus.ACTIVE:
        goal.status = GoalStatus.COMPLETED
        logger.info("Goal %s completed", goal.id)

    goal.save(update_fields=['current_amount', 'status', 'updated_at'])
    return goal
