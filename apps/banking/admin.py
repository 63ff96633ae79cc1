from django.contrib import admin

from .models import BankConnection


@admin.register(BankConnection)
class BankConnectionAdmin(admin.ModelAdmin):
    list_display = ['institution_name', 'user', 'status', 'last_synced_at', 'created_at']
    list_filter = ['status', 'institution_name']
    search_fields = ['institution_name', 'institution_id', 'requisition_id', 'reference', 'user__email']
    readonly_fields = ['requisition_id', 'reference', 'account_ids', 'last_synced_at', 'created_at', 'updated_at']
    raw_id_fields = ['user']
