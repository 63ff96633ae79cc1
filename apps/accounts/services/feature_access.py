"""
Feature access checks against the subscription tier table.

The resolution order is fixed: admins see everything, an explicit
per-user override comes next, an expired subscription drops back to the
free tier, and otherwise the tier table decides.
"""

from typing import List, Optional

from apps.accounts.features import FEATURES, TIER_FEATURES, TIER_ORDER
from apps.accounts.models import SubscriptionTier, User


def _effective_tier(user: User) -> str:
    if user.is_subscription_expired():
        return SubscriptionTier.FREE
    return user.subscription_tier


def has_feature_access(user: User, feature: str) -> bool:
    """
    Decide whether a user may use a feature.

    Args:
        user: The user to check (anonymous users never have access)
        feature: A key of FEATURES

    Returns:
        True if access is granted
    """
    if user is None or not user.is_authenticated:
        return False
    if feature not in FEATURES:
        return False

    if user.is_admin:
        return True

    overrides = user.custom_permissions or {}
    if feature in overrides:
        return bool(overrides[feature])

    return feature in TIER_FEATURES.get(_effective_tier(user), [])


def get_accessible_features(user: User) -> List[str]:
    """Return feature keys available to the user, with overrides applied."""
    if user.is_admin:
        return list(FEATURES.keys())

    features = set(TIER_FEATURES.get(_effective_tier(user), []))
    for key, allowed in (user.custom_permissions or {}).items():
        if key not in FEATURES:
            continue
        if allowed:
            features.add(key)
        else:
            features.discard(key)

    return [key for key in FEATURES if key in features]


def get_next_tier(tier: str) -> Optional[str]:
    index = TIER_ORDER.index(tier)
    if index + 1 < len(TIER_ORDER):
        return TIER_ORDER[index + 1]
    return None


def can_upgrade(user: User) -> bool:
    return not user.is_admin and get_next_tier(user.subscription_tier) is not None


def get_upgrade_features(user: User) -> List[str]:
    """Features gained by moving to the next tier that the user does not already have."""
    next_tier = get_next_tier(user.subscription_tier)
    if next_tier is None:
        return []

    current = set(get_accessible_features(user))
    return [key for key in TIER_FEATURES[next_tier] if key not in current]
