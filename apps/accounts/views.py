from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from drf_spectacular.utils import extend_schema

from .features import TIER_ORDER, TIER_PRICES, TIER_FEATURES
from .models import User
from .permissions import IsAdminRole
from .serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
    AdminUserSerializer,
    PermissionUpdateSerializer,
    FeatureSerializer,
    UserPermissionsSerializer,
    feature_catalogue,
)
from .services import (
    register_user,
    authenticate_user,
    get_accessible_features,
    get_next_tier,
    can_upgrade,
    get_upgrade_features,
    update_user_permissions,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    PermissionUpdateError,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class LogoutRequestSerializer(serializers.Serializer):
    refresh = serializers.CharField(help_text="Refresh token of the session", required=False)


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class AdminUserPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


@extend_schema(
    request=UserRegistrationSerializer,
    responses={
        201: AuthResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Register a new family member account and receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new user account."""
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data.copy()
    data.pop('password_confirm', None)

    try:
        user = register_user(**data)
    except UserRegistrationError as e:
        return Response(
            {'error': str(e)},
            status=status.HTTP_400_BAD_REQUEST
        )

    return Response({
        'message': 'Registration successful',
        'user': UserSerializer(user).data,
        'tokens': _tokens_for(user),
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError:
        return Response({
            'error': 'Invalid credentials'
        }, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({
            'error': str(e)
        }, status=status.HTTP_403_FORBIDDEN)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': _tokens_for(user),
    })


@extend_schema(
    request=LogoutRequestSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Logout. The refresh token, if sent, must be well formed.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Logout the current session."""
    refresh_token = request.data.get('refresh')
    if refresh_token:
        try:
            RefreshToken(refresh_token)
        except TokenError:
            return Response({
                'error': 'Invalid token'
            }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Logout successful'
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    request=UserSerializer,
    responses={
        200: UserSerializer,
        400: ErrorResponseSerializer,
    },
    description="Update the current user's profile (display_name, preferences).",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """Update user profile."""
    serializer = UserSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@extend_schema(
    responses={200: UserPermissionsSerializer},
    description="Features available to the current user and upgrade information.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_permissions(request):
    """Current user's effective features - thin HTTP handler."""
    user = request.user
    return Response({
        'tier': user.subscription_tier,
        'is_admin': user.is_admin,
        'subscription_expired': user.is_subscription_expired(),
        'features': get_accessible_features(user),
        'can_upgrade': can_upgrade(user),
        'next_tier': get_next_tier(user.subscription_tier),
        'upgrade_features': get_upgrade_features(user),
    })


@extend_schema(
    responses={200: FeatureSerializer(many=True)},
    description="Feature catalogue with the tier table and monthly prices.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def feature_list(request):
    """Feature catalogue - thin HTTP handler."""
    tiers = [
        {
            'tier': str(tier),
            'price': str(TIER_PRICES[tier]),
            'features': TIER_FEATURES[tier],
        }
        for tier in TIER_ORDER
    ]
    return Response({
        'features': feature_catalogue(),
        'tiers': tiers,
    })


@extend_schema(
    responses={200: AdminUserSerializer(many=True)},
    description="List all users with their roles and tiers (administrators only).",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_list(request):
    """List users for administrators."""
    queryset = User.objects.order_by('-created_at')
    paginator = AdminUserPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(AdminUserSerializer(page, many=True).data)


@extend_schema(
    request=PermissionUpdateSerializer,
    responses={
        200: AdminUserSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Change a user's role, tier, expiry or feature overrides (administrators only).",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_permissions(request, pk):
    """Update a user's permissions - thin HTTP handler."""
    serializer = PermissionUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = update_user_permissions(
            actor=request.user,
            target_id=pk,
            changes=serializer.validated_data,
        )
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except PermissionUpdateError as e:
        return Response(
            {'error': str(e), 'errors': e.errors},
            status=status.HTTP_400_BAD_REQUEST
        )

    return Response(AdminUserSerializer(user).data)
