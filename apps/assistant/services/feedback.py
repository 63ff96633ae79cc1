"""
Learning from category corrections.

Every correction of an AI-suggested category is written to the audit log
(table ``ai_categorization``, action CORRECTION) and folded into a
FeedbackPattern keyed by the description's first three keywords.
"""

import logging
from collections import Counter
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.ledger.models import AuditAction, AuditLog, Category, Transaction

from ..models import FeedbackPattern
from ..text import extract_keywords

logger = logging.getLogger(__name__)

AUDIT_TABLE = 'ai_categorization'
PATTERN_KEY_WORDS = 3
MOST_CORRECTED_WINDOW_DAYS = 90
RECENT_PATTERN_DAYS = 30


def pattern_confidence(occurrences: int) -> float:
    return min(occurrences * 0.2, 0.9)


@transaction.atomic
def learn_from_correction(
    *,
    transaction: Transaction,
    original_category: Category,
    corrected_category: Category,
    user: Optional[User] = None,
) -> Optional[FeedbackPattern]:
    """
    Record a correction and strengthen the matching feedback pattern.

    Returns:
        The updated FeedbackPattern, or None when the description has no
        usable keywords
    """
    AuditLog.objects.record(
        table_name=AUDIT_TABLE,
        record_id=transaction.id,
        action=AuditAction.CORRECTION,
        old_values={'category_id': str(original_category.id)},
        new_values={
            'category_id': str(corrected_category.id),
            'description': transaction.description,
        },
        user=user,
    )

    keywords = extract_keywords(transaction.description)
    if not keywords:
        return None

    key = '_'.join(keywords[:PATTERN_KEY_WORDS])
    now = timezone.now()
    pattern = FeedbackPattern.objects.select_for_update().filter(key=key).first()

    if pattern is None:
        pattern = FeedbackPattern.objects.create(
            key=key,
            keywords=keywords,
            description=transaction.description[:500],
            original_category=original_category,
            corrected_category=corrected_category,
            occurrences=1,
            confidence=pattern_confidence(1),
            last_used=now,
        )
    else:
        pattern.occurrences += 1
        pattern.confidence = pattern_confidence(pattern.occurrences)
        pattern.keywords = pattern.keywords + [k for k in keywords if k not in pattern.keywords]
        pattern.corrected_category = corrected_category
        pattern.last_used = now
        pattern.save()

    logger.info("Feedback pattern '%s' now at %d occurrence(s)", key, pattern.occurrences)
    return pattern


def categorization_stats(*, days: int = 30) -> dict:
    """
    How well AI categorization did over the last `days` days.

    ai_accuracy is the share of AI-categorized transactions that were not
    corrected; validation_rate the share of transactions reviewed.
    """
    since = timezone.now() - timedelta(days=days)
    recent = Transaction.objects.filter(created_at__gte=since)

    total = recent.count()
    ai_generated = recent.filter(is_ai_generated=True).count()
    validated = recent.filter(is_validated=True).count()
    corrections = AuditLog.objects.filter(
        table_name=AUDIT_TABLE,
        action=AuditAction.CORRECTION,
        timestamp__gte=since,
    ).count()

    accuracy = (ai_generated - corrections) / ai_generated * 100 if ai_generated else 0

    return {
        'period': {'days': days, 'since': since},
        'total_transactions': total,
        'ai_generated_transactions': ai_generated,
        'validated_transactions': validated,
        'corrections': corrections,
        'ai_accuracy': round(max(accuracy, 0), 2),
        'validation_rate': round(validated / total * 100, 2) if total else 0,
    }


def most_corrected_categories(*, limit: int = 5) -> list:
    """Most frequent (from -> to) category corrections of the last 90 days."""
    since = timezone.now() - timedelta(days=MOST_CORRECTED_WINDOW_DAYS)
    corrections = AuditLog.objects.filter(
        table_name=AUDIT_TABLE,
        action=AuditAction.CORRECTION,
        timestamp__gte=since,
    ).values_list('old_values', 'new_values')

    counts = Counter()
    for old_values, new_values in corrections:
        from_id = (old_values or {}).get('category_id')
        to_id = (new_values or {}).get('category_id')
        if from_id and to_id:
            counts[(from_id, to_id)] += 1

    top = counts.most_common(limit)
    ids = {category_id for pair, _ in top for category_id in pair}
    names = {
        str(c.id): f"{c.category} - {c.sub_category}"
        for c in Category.objects.filter(id__in=ids)
    }

    return [
        {
            'correction_pattern': f"{from_id}->{to_id}",
            'count': count,
            'from_category': names.get(from_id, 'Unknown'),
            'to_category': names.get(to_id, 'Unknown'),
        }
        for (from_id, to_id), count in top
    ]


def feedback_insights() -> dict:
    recent_since = timezone.now() - timedelta(days=RECENT_PATTERN_DAYS)
    patterns = FeedbackPattern.objects.all()

    return {
        'total_patterns': patterns.count(),
        'trusted_patterns': patterns.trusted().count(),
        'high_confidence_patterns': patterns.filter(confidence__gt=0.7).count(),
        'recent_patterns': patterns.filter(last_used__gte=recent_since).count(),
        'most_corrected_categories': most_corrected_categories(),
    }


@transaction.atomic
def reset_learning(*, older_than_days: int = 180) -> dict:
    """Forget feedback patterns not used in the last `older_than_days` days."""
    cutoff = timezone.now() - timedelta(days=older_than_days)
    removed, _ = FeedbackPattern.objects.filter(last_used__lt=cutoff).delete()

    logger.info("Removed %d stale feedback pattern(s)", removed)
    return {
        'message': 'Learning patterns reset successfully',
        'removed_patterns': removed,
        'remaining_patterns': FeedbackPattern.objects.count(),
    }
