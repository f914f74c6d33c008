"""
Admin configuration for the Expenses app.
"""
from django.contrib import admin

from apps.expenses.models import Expense, ExpenseGuest, ExpenseReminder, ExpenseSplit


class ExpenseSplitInline(admin.TabularInline):
    model = ExpenseSplit
    extra = 0
    fields = ['user', 'guest', 'amount', 'percentage', 'is_settled', 'settled_at', 'settled_by']
    readonly_fields = ['settled_at', 'settled_by']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = [
        'description', 'group', 'amount', 'currency', 'category',
        'split_type', 'paid_by', 'expense_date',
    ]
    list_filter = ['category', 'split_type', 'currency', 'expense_date']
    search_fields = ['description', 'notes', 'group__name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ExpenseSplitInline]


@admin.register(ExpenseSplit)
class ExpenseSplitAdmin(admin.ModelAdmin):
    list_display = ['expense', 'user', 'guest', 'amount', 'is_settled', 'settled_at']
    list_filter = ['is_settled']
    search_fields = ['expense__description', 'user__email', 'guest__name']


@admin.register(ExpenseGuest)
class ExpenseGuestAdmin(admin.ModelAdmin):
    list_display = ['name', 'group', 'created_by', 'created_at']
    search_fields = ['name', 'group__name']


@admin.register(ExpenseReminder)
class ExpenseReminderAdmin(admin.ModelAdmin):
    list_display = ['expense', 'from_user', 'to_user', 'created_at']
    search_fields = ['expense__description', 'message']
