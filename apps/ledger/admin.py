from django.contrib import admin
from django.utils.html import format_html

from .models import Origin, Bank, Category, Transaction, AuditLog, TransactionFlow


@admin.register(Origin)
class OriginAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Bank)
class BankAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['sub_category', 'category', 'major_category', 'flow']
    list_filter = ['flow', 'major_category']
    search_fields = ['category', 'sub_category']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Admin interface for ledger transactions."""

    list_display = [
        'date',
        'description',
        'flow_badge',
        'amount_display',
        'category',
        'origin',
        'bank',
        'is_ai_generated',
        'is_validated',
    ]
    list_filter = ['flow', 'is_validated', 'is_ai_generated', 'year', 'month', 'origin', 'bank']
    search_fields = ['description', 'notes', 'external_id']
    readonly_fields = ['month', 'year', 'external_id', 'raw_data', 'created_at', 'updated_at']
    raw_id_fields = ['category', 'created_by']
    date_hierarchy = 'date'
    ordering = ['-date']
    actions = ['mark_validated']

    fieldsets = (
        ('Transaction', {
            'fields': ('date', 'flow', 'description', 'incomes', 'outgoings', 'notes')
        }),
        ('Classification', {
            'fields': ('origin', 'bank', 'category', 'ai_confidence', 'is_ai_generated', 'is_validated')
        }),
        ('Period', {
            'fields': ('month', 'year')
        }),
        ('Bank Sync', {
            'fields': ('external_id', 'raw_data'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def flow_badge(self, obj):
        color = '#28a745' if obj.flow == TransactionFlow.INCOME else '#dc3545'
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; border-radius: 3px;">{}</span>',
            color,
            obj.get_flow_display()
        )
    flow_badge.short_description = 'Flow'

    def amount_display(self, obj):
        return f"€{obj.amount:.2f}"
    amount_display.short_description = 'Amount'

    @admin.action(description='Mark selected transactions as validated')
    def mark_validated(self, request, queryset):
        updated = queryset.update(is_validated=True)
        self.message_user(request, f'{updated} transactions validated.')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['timestamp', 'table_name', 'action', 'record_id', 'user']
    list_filter = ['table_name', 'action']
    search_fields = ['record_id']
    readonly_fields = ['table_name', 'record_id', 'action', 'old_values', 'new_values', 'user', 'timestamp']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        return False
