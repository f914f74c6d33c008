"""
Admin configuration for the Polls app.
"""
from django.contrib import admin

from apps.polls.models import LotteryResult, Poll, PollOption, PollVote


class PollOptionInline(admin.TabularInline):
    model = PollOption
    extra = 0
    fields = ['option_text', 'option_date', 'sort_order', 'created_by']
    ordering = ['sort_order']


@admin.register(Poll)
class PollAdmin(admin.ModelAdmin):
    list_display = ['title', 'group', 'poll_type', 'is_closed', 'closes_at', 'created_by', 'created_at']
    list_filter = ['poll_type', 'is_closed']
    search_fields = ['title', 'description', 'group__name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [PollOptionInline]


@admin.register(PollVote)
class PollVoteAdmin(admin.ModelAdmin):
    list_display = ['poll', 'option', 'user', 'rank', 'availability']
    list_filter = ['availability']


@admin.register(LotteryResult)
class LotteryResultAdmin(admin.ModelAdmin):
    list_display = ['poll', 'winner_option', 'suggested_by', 'drawn_at']
