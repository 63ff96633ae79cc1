"""
Domain exceptions for budgeting services.

Services raise these; views translate them into HTTP responses.
"""


class BudgetingServiceError(Exception):
    """Base exception for budgeting service errors."""
    pass


class BudgetNotFoundError(BudgetingServiceError):
    """Raised when a budget doesn't exist."""
    pass


class DuplicateBudgetError(BudgetingServiceError):
    """Raised when a category already has a budget for the period."""
    pass


class InvalidBudgetError(BudgetingServiceError):
    """Raised when a budget breaks a business rule."""
    pass


class GoalNotFoundError(BudgetingServiceError):
    """Raised when a goal doesn't exist or belongs to someone else."""
    pass


class InvalidGoalError(BudgetingServiceError):
    """Raised when goal data is inconsistent."""
    pass
