"""
Budgeting app services layer.

Budgets are shared by the family; goals belong to one member.
"""

from .exceptions import (
    BudgetingServiceError,
    BudgetNotFoundError,
    DuplicateBudgetError,
    InvalidBudgetError,
    GoalNotFoundError,
    InvalidGoalError,
)

from .budget_tracking import (
    BudgetStatus,
    get_budget_by_id,
    spent_for_budget,
    budget_status,
    budget_overview,
    create_budget,
    update_budget,
    delete_budget,
)

from .goal_management import (
    list_goals,
    get_goal,
    create_goal,
    update_goal,
    delete_goal,
)

from .goal_progress import (
    calculate_progress,
    goal_insights,
    update_goal_progress,
)


__all__ = [
    # Exceptions
    'BudgetingServiceError',
    'BudgetNotFoundError',
    'DuplicateBudgetError',
    'InvalidBudgetError',
    'GoalNotFoundError',
    'InvalidGoalError',

    # Budgets
    'BudgetStatus',
    'get_budget_by_id',
    'spent_for_budget',
    'budget_status',
    'budget_overview',
    'create_budget',
    'update_budget',
    'delete_budget',

    # Goals
    'list_goals',
    'get_goal',
    'create_goal',
    'update_goal',
    'delete_goal',

    # Progress
    'calculate_progress',
    'goal_insights',
    'update_goal_progress',
]
