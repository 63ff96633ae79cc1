from django.contrib import admin

from .models import Budget, Goal


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ['category', 'year', 'month', 'amount_limit', 'created_by']
    list_filter = ['year', 'month', 'category__major_category']
    search_fields = ['category__category', 'category__sub_category']
    raw_id_fields = ['category', 'created_by']


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'goal_type', 'status', 'priority', 'current_amount', 'target_amount', 'target_date']
    list_filter = ['goal_type', 'status', 'priority', 'period']
    search_fields = ['title', 'owner__email']
    raw_id_fields = ['owner', 'category']
    date_hierarchy = 'target_date'
