"""
Admin configuration for the Pools app.
"""
from django.contrib import admin

from apps.pools.models import ContributionPool, PoolContribution, PoolMember


class PoolMemberInline(admin.TabularInline):
    model = PoolMember
    extra = 0
    fields = ['user', 'target_amount', 'total_contributed', 'is_exempt', 'exempt_reason']
    readonly_fields = ['total_contributed']


@admin.register(ContributionPool)
class ContributionPoolAdmin(admin.ModelAdmin):
    list_display = ['title', 'group', 'goal_amount', 'current_amount', 'currency', 'status', 'deadline']
    list_filter = ['status', 'currency', 'is_private']
    search_fields = ['title', 'description', 'group__name']
    readonly_fields = ['current_amount', 'created_at', 'updated_at']
    inlines = [PoolMemberInline]


@admin.register(PoolContribution)
class PoolContributionAdmin(admin.ModelAdmin):
    list_display = ['pool', 'user', 'amount', 'payment_method', 'status', 'confirmed_at']
    list_filter = ['status', 'payment_method']
    search_fields = ['pool__title', 'user__email', 'payment_reference']
