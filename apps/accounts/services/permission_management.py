"""
Admin-side management of roles, tiers and feature overrides.
"""

import logging
from typing import List

from django.db import transaction

from apps.accounts.features import FEATURES
from apps.accounts.models import SubscriptionTier, User, UserRole

from .exceptions import PermissionUpdateError, UserNotFoundError

logger = logging.getLogger(__name__)


def validate_permission_update(*, actor: User, target: User, changes: dict) -> List[str]:
    """
    Check a permission change request without applying it.

    Args:
        actor: The user performing the change
        target: The user being changed
        changes: Any of role, subscription_tier, subscription_expires_at,
            custom_permissions

    Returns:
        A list of human-readable errors; empty when the change is allowed
    """
    errors = []

    if not actor.is_admin:
        errors.append('Only administrators can update user permissions')
        return errors

    role = changes.get('role')
    if role is not None:
        if role not in UserRole.values:
            errors.append(f'Invalid role: {role}')
        elif actor.pk == target.pk and role != UserRole.ADMIN:
            errors.append('Administrators cannot remove their own admin role')

    tier = changes.get('subscription_tier')
    if tier is not None and tier not in SubscriptionTier.values:
        errors.append(f'Invalid subscription tier: {tier}')

    custom = changes.get('custom_permissions')
    if custom is not None:
        if not isinstance(custom, dict):
            errors.append('custom_permissions must be an object')
        else:
            unknown = sorted(key for key in custom if key not in FEATURES)
            if unknown:
                errors.append(f"Invalid feature keys: {', '.join(unknown)}")

    return errors


@transaction.atomic
def update_user_permissions(*, actor: User, target_id, changes: dict) -> User:
    """
    Apply a validated permission change to a user.

    Raises:
        UserNotFoundError: If the target user does not exist
        PermissionUpdateError: If validation fails
    """
    try:
        target = User.objects.select_for_update().get(id=target_id)
    except User.DoesNotExist:
        raise UserNotFoundError("User not found")

    errors = validate_permission_update(actor=actor, target=target, changes=changes)
    if errors:
        raise PermissionUpdateError(errors)

    update_fields = []
    for field in ('role', 'subscription_tier', 'subscription_expires_at', 'custom_permissions'):
        if field in changes:
            setattr(target, field, changes[field])
            update_fields.append(field)

    if update_fields:
        target.save(update_fields=update_fields)
        logger.info(
            "User %s updated permissions of %s: %s",
            actor.id, target.id, ', '.join(update_fields)
        )

    return target
