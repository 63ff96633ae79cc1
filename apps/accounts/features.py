"""
Feature catalogue and tier table.

Every gated endpoint names one of the FEATURES keys. A tier includes the
features of every tier below it.
"""

from decimal import Decimal

from .models import SubscriptionTier


TIER_ORDER = [
    SubscriptionTier.FREE,
    SubscriptionTier.BASIC,
    SubscriptionTier.PREMIUM,
    SubscriptionTier.PRO,
]

TIER_PRICES = {
    SubscriptionTier.FREE: Decimal('0.00'),
    SubscriptionTier.BASIC: Decimal('9.99'),
    SubscriptionTier.PREMIUM: Decimal('19.99'),
    SubscriptionTier.PRO: Decimal('29.99'),
}

FEATURES = {
    'dashboard': {
        'name': 'Dashboard',
        'description': 'Overview of income, expenses and recent activity',
        'tier': SubscriptionTier.FREE,
        'category': 'core',
    },
    'transactions': {
        'name': 'Transactions',
        'description': 'Record, edit and search transactions',
        'tier': SubscriptionTier.FREE,
        'category': 'core',
    },
    'budgeting': {
        'name': 'Budgeting',
        'description': 'Monthly and yearly category budgets',
        'tier': SubscriptionTier.BASIC,
        'category': 'core',
    },
    'export': {
        'name': 'Data Export',
        'description': 'Export transactions and reports to CSV or Excel',
        'tier': SubscriptionTier.BASIC,
        'category': 'data',
    },
    'analytics': {
        'name': 'Analytics',
        'description': 'Category breakdowns, trends and forecasts',
        'tier': SubscriptionTier.PREMIUM,
        'category': 'analytics',
    },
    'goals': {
        'name': 'Financial Goals',
        'description': 'Savings, investment and spending-limit goals',
        'tier': SubscriptionTier.PREMIUM,
        'category': 'core',
    },
    'ai_assistant': {
        'name': 'AI Assistant',
        'description': 'Automatic categorization and natural-language questions',
        'tier': SubscriptionTier.PREMIUM,
        'category': 'ai',
    },
    'bulk_upload': {
        'name': 'Bulk Upload',
        'description': 'Import transactions and reference data from spreadsheets',
        'tier': SubscriptionTier.PREMIUM,
        'category': 'data',
    },
    'advanced_charts': {
        'name': 'Advanced Charts',
        'description': 'Detailed interactive charts',
        'tier': SubscriptionTier.PRO,
        'category': 'analytics',
    },
    'community': {
        'name': 'Community',
        'description': 'Shared tips and anonymous benchmarks',
        'tier': SubscriptionTier.PRO,
        'category': 'social',
    },
    'notifications': {
        'name': 'Notifications',
        'description': 'Budget and goal alerts',
        'tier': SubscriptionTier.PRO,
        'category': 'core',
    },
    'subscriptions': {
        'name': 'Subscription Tracking',
        'description': 'Detect and follow recurring payments',
        'tier': SubscriptionTier.PRO,
        'category': 'analytics',
    },
}


def _build_tier_features():
    tier_features = {}
    accumulated = []
    for tier in TIER_ORDER:
        accumulated = accumulated + [
            key for key, feature in FEATURES.items() if feature['tier'] == tier
        ]
        tier_features[tier] = accumulated
    return tier_features


TIER_FEATURES = _build_tier_features()
