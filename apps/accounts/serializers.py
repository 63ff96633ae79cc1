from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from .features import FEATURES
from .models import User, UserRole, SubscriptionTier


# =============================================================================
# Input Serializers
# =============================================================================

class UserRegistrationSerializer(serializers.ModelSerializer):
    """Serializer for user registration."""

    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'display_name']

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class PermissionUpdateSerializer(serializers.Serializer):
    """
    Validate an admin permission change.

    Fields are all optional; only the ones sent are applied. Business rules
    (self-demotion, feature keys) are enforced by the service layer.
    """

    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    subscription_tier = serializers.ChoiceField(choices=SubscriptionTier.choices, required=False)
    subscription_expires_at = serializers.DateTimeField(required=False, allow_null=True)
    custom_permissions = serializers.DictField(
        child=serializers.BooleanField(),
        required=False
    )


# =============================================================================
# Output Serializers
# =============================================================================

class UserSerializer(serializers.ModelSerializer):
    """User profile; role and subscription are read-only here."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'subscription_tier',
            'subscription_expires_at',
            'created_at',
            'last_login',
            'preferences',
        ]
        read_only_fields = [
            'id', 'email', 'role', 'subscription_tier',
            'subscription_expires_at', 'created_at', 'last_login',
        ]


class AdminUserSerializer(serializers.ModelSerializer):
    """User listing for administrators, including overrides."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'subscription_tier',
            'subscription_expires_at',
            'custom_permissions',
            'is_active',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class FeatureSerializer(serializers.Serializer):
    key = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    tier = serializers.CharField()
    category = serializers.CharField()


class UserPermissionsSerializer(serializers.Serializer):
    """Response for the current user's permissions."""
    tier = serializers.CharField()
    is_admin = serializers.BooleanField()
    subscription_expired = serializers.BooleanField()
    features = serializers.ListField(child=serializers.CharField())
    can_upgrade = serializers.BooleanField()
    next_tier = serializers.CharField(allow_null=True)
    upgrade_features = serializers.ListField(child=serializers.CharField())


def feature_catalogue():
    """FEATURES as a list of plain dicts for serialization."""
    return [
        {'key': key, **{k: str(v) for k, v in feature.items()}}
        for key, feature in FEATURES.items()
    ]
