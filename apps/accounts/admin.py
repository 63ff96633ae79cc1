# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, SubscriptionTier, UserRole


TIER_COLORS = {
    SubscriptionTier.FREE: ('#ccc', '#666'),
    SubscriptionTier.BASIC: ('#5E7E8E', 'white'),
    SubscriptionTier.PREMIUM: ('#6B8E5E', 'white'),
    SubscriptionTier.PRO: ('#A47449', 'white'),
}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for family members.

    Provides:
    - User listing with role and subscription tier
    - Filtering by tier, role and status
    - Bulk actions to change tiers
    """

    list_display = [
        'email',
        'display_name',
        'role',
        'tier_badge',
        'subscription_expires_at',
        'is_active',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'subscription_tier',
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Subscription', {
            'fields': ('role', 'subscription_tier', 'subscription_expires_at', 'custom_permissions'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Preferences', {
            'fields': ('preferences',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
        ('Subscription', {
            'fields': ('role', 'subscription_tier'),
        }),
    )

    readonly_fields = [
        'created_at',
        'last_login',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    def tier_badge(self, obj):
        """Display subscription tier as colored badge."""
        bg, fg = TIER_COLORS.get(obj.subscription_tier, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_subscription_tier_display()
        )
    tier_badge.short_description = 'Tier'
    tier_badge.admin_order_field = 'subscription_tier'

    actions = [
        'set_tier_free',
        'set_tier_premium',
        'make_admin',
    ]

    @admin.action(description='Move selected users to the free tier')
    def set_tier_free(self, request, queryset):
        count = queryset.update(subscription_tier=SubscriptionTier.FREE)
        self.message_user(request, f'Moved {count} user(s) to free.')

    @admin.action(description='Move selected users to the premium tier')
    def set_tier_premium(self, request, queryset):
        count = queryset.update(subscription_tier=SubscriptionTier.PREMIUM)
        self.message_user(request, f'Moved {count} user(s) to premium.')

    @admin.action(description='Grant the admin role')
    def make_admin(self, request, queryset):
        count = queryset.update(role=UserRole.ADMIN)
        self.message_user(request, f'Granted admin to {count} user(s).')
