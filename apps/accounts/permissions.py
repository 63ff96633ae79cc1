"""
Custom permission classes shared by every app.

Permission Classes:
    HasFeatureAccess - Gate a view on a subscription feature
    IsAdminRole - Require the ADMIN role

Usage:
    class TransactionViewSet(viewsets.ModelViewSet):
        permission_classes = [IsAuthenticated, HasFeatureAccess]
        required_feature = 'transactions'

    @api_view(['GET'])
    @permission_classes([IsAuthenticated, feature_required('analytics')])
    def summary(request):
        ...
"""

from rest_framework.permissions import BasePermission

from apps.accounts.features import FEATURES
from apps.accounts.services import has_feature_access


class HasFeatureAccess(BasePermission):
    """
    Allow the request only if the user's tier grants a feature.

    The feature comes from the class attribute ``feature`` (see
    feature_required) or from ``view.required_feature``. Views naming no
    feature are not restricted by this class.
    """

    feature = None
    message = 'Your subscription does not include this feature.'

    def has_permission(self, request, view):
        feature = self.feature or getattr(view, 'required_feature', None)
        if feature is None:
            return True

        allowed = has_feature_access(request.user, feature)
        if not allowed:
            self.message = (
                f"Your subscription does not include '{FEATURES[feature]['name']}'. "
                f"Upgrade to the {FEATURES[feature]['tier']} tier or higher."
            )
        return allowed


def feature_required(feature):
    """Build a HasFeatureAccess subclass bound to one feature, for function views."""
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature}")

    name = 'Has' + ''.join(part.title() for part in feature.split('_')) + 'Access'
    return type(name, (HasFeatureAccess,), {'feature': feature})


class IsAdminRole(BasePermission):
    """Only administrators (ADMIN role or superuser)."""

    message = 'Administrator access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)
