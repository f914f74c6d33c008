"""
Admin configuration for the Trips app.
"""
from django.contrib import admin

from apps.trips.models import Trip, TripDependent, TripTask


class TripTaskInline(admin.TabularInline):
    model = TripTask
    extra = 0
    fields = ['title', 'column_id', 'sort_order', 'assigned_to', 'due_date']
    ordering = ['column_id', 'sort_order']


class TripDependentInline(admin.TabularInline):
    model = TripDependent
    extra = 0
    fields = ['name', 'type', 'age_group', 'age', 'responsible_member']


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ['name', 'group', 'status', 'start_date', 'end_date', 'created_by', 'created_at']
    list_filter = ['status', 'start_date', 'created_at']
    search_fields = ['name', 'description', 'group__name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [TripTaskInline, TripDependentInline]


@admin.register(TripTask)
class TripTaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'trip', 'column_id', 'sort_order', 'assigned_to', 'due_date']
    list_filter = ['column_id', 'trip__group']
    search_fields = ['title', 'description']
    ordering = ['trip', 'column_id', 'sort_order']


@admin.register(TripDependent)
class TripDependentAdmin(admin.ModelAdmin):
    list_display = ['name', 'trip', 'type', 'age_group', 'age', 'responsible_member']
    list_filter = ['type', 'age_group']
    search_fields = ['name', 'notes']
