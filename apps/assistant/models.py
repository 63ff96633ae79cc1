from django.db import models
import uuid

from apps.ledger.models import Category

# Corrections needed before a pattern is trusted
MIN_PATTERN_OCCURRENCES = 2


class FeedbackPatternQuerySet(models.QuerySet):

    def trusted(self):
        return self.filter(occurrences__gte=MIN_PATTERN_OCCURRENCES)


class FeedbackPattern(models.Model):
    """
    Categorization learned from members correcting AI suggestions.

    Corrections whose descriptions share their first three keywords fold
    into one pattern; confidence grows 0.2 per occurrence up to 0.9.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=255, unique=True)
    keywords = models.JSONField(default=list)
    description = models.CharField(max_length=500)
    original_category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    corrected_category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name='feedback_patterns'
    )
    occurrences = models.PositiveIntegerField(default=1)
    confidence = models.FloatField(default=0.2)

    created_at = models.DateTimeField(auto_now_add=True)
    last_used = models.DateTimeField()

    objects = FeedbackPatternQuerySet.as_manager()

    class Meta:
        db_table = 'ai_feedback_patterns'
        ordering = ['-last_used']
        indexes = [
            models.Index(fields=['last_used'], name='ai_feedback_last_used_idx'),
        ]

    def __str__(self):
        return f"{self.key} -> {self.corrected_category} ({self.occurrences}x)"
