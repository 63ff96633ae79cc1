"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    PermissionUpdateError,
)
from .user_registration import register_user
from .user_authentication import authenticate_user
from .feature_access import (
    has_feature_access,
    get_accessible_features,
    get_next_tier,
    can_upgrade,
    get_upgrade_features,
)
from .permission_management import validate_permission_update, update_user_permissions

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'UserNotFoundError',
    'PermissionUpdateError',
    # Services
    'register_user',
    'authenticate_user',
    'has_feature_access',
    'get_accessible_features',
    'get_next_tier',
    'can_upgrade',
    'get_upgrade_features',
    'validate_permission_update',
    'update_user_permissions',
]
