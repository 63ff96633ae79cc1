from django.contrib import admin

from .models import FeedbackPattern


@admin.register(FeedbackPattern)
class FeedbackPatternAdmin(admin.ModelAdmin):
    list_display = ['key', 'corrected_category', 'occurrences', 'confidence', 'last_used']
    list_filter = ['corrected_category__flow']
    search_fields = ['key', 'description']
    readonly_fields = ['created_at']
    raw_id_fields = ['original_category', 'corrected_category']
