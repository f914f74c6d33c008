"""
Admin configuration for the Groups app.
"""
from django.contrib import admin

from apps.groups.models import Group, GroupMember


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    extra = 0
    autocomplete_fields = ['user']
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'invite_code', 'created_by', 'is_active', 'member_count', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'invite_code']
    readonly_fields = ['invite_code', 'created_at', 'updated_at']
    inlines = [GroupMemberInline]


@admin.register(GroupMember)
class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ['group', 'user', 'role', 'joined_at']
    list_filter = ['role']
    list_select_related = ['group', 'user']
    search_fields = ['group__name', 'user__email', 'user__display_name']
