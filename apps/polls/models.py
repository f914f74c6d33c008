"""
Models for the Polls app.
"""
from django.conf import settings
from django.db import models

from common.models import TimestampedModel


def default_poll_settings():
    return {'allow_member_options': True}


class Poll(TimestampedModel):
    """
    A question put to a group: pick options, rank them, mark dates or draw
    a winner at random.
    """
    class Type(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple Choice'
        RANKING = 'ranking', 'Ranking'
        DATE_PICKER = 'date_picker', 'Date Picker'
        LOTTERY = 'lottery', 'Lottery'

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='polls',
    )
    trip = models.ForeignKey(
        'trips.Trip',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='polls',
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    poll_type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.MULTIPLE_CHOICE,
    )
    # Declared before `settings`, which shadows django.conf.settings below.
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_polls',
    )
    settings = models.JSONField(
        default=default_poll_settings,
        blank=True,
        help_text='allow_member_options, multi_select, max_selections, anonymous, show_results',
    )
    closes_at = models.DateTimeField(null=True, blank=True, db_index=True)
    is_closed = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = 'polls'
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def allow_member_options(self):
        return (self.settings or {}).get('allow_member_options') is not False

    @property
    def is_anonymous(self):
        return bool((self.settings or {}).get('anonymous'))


class PollOption(TimestampedModel):
    poll = models.ForeignKey(
        Poll,
        on_delete=models.CASCADE,
        related_name='options',
    )
    option_text = models.CharField(max_length=255)
    option_date = models.DateField(null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='suggested_poll_options',
    )

    class Meta:
        db_table = 'poll_options'
        ordering = ['sort_order', 'created_at']

    def __str__(self):
        return self.option_text


class PollVote(TimestampedModel):
    class Availability(models.TextChoices):
        AVAILABLE = 'available', 'Available'
        MAYBE = 'maybe', 'Maybe'
        UNAVAILABLE = 'unavailable', 'Unavailable'

    poll = models.ForeignKey(
        Poll,
        on_delete=models.CASCADE,
        related_name='votes',
    )
    option = models.ForeignKey(
        PollOption,
        on_delete=models.CASCADE,
        related_name='votes',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='poll_votes',
    )
    rank = models.PositiveSmallIntegerField(null=True, blank=True)
    availability = models.CharField(
        max_length=12,
        choices=Availability.choices,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = 'poll_votes'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['option', 'user'], name='unique_poll_vote_per_option'),
        ]

    def __str__(self):
        return f'{self.user} -> {self.option}'


class LotteryResult(TimestampedModel):
    """
    The single draw for a lottery poll. One row per poll.
    """
    poll = models.OneToOneField(
        Poll,
        on_delete=models.CASCADE,
        related_name='lottery_result',
    )
    winner_option = models.ForeignKey(
        PollOption,
        on_delete=models.CASCADE,
        related_name='+',
    )
    suggested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    drawn_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lottery_results'

    def __str__(self):
        return f'{self.poll}: {self.winner_option}'
