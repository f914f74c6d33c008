"""
Models for the Notifications app.
"""
from django.conf import settings
from django.db import models

from common.models import TimestampedModel


class Notification(TimestampedModel):
    """
    A message for one user about something another member did.

    Rows are written as a side effect of other actions and only ever
    read back through the notifications API.
    """
    class Type(models.TextChoices):
        EXPENSE_ADDED = 'expense_added', 'Expense added'
        EXPENSE_REMINDER = 'expense_reminder', 'Expense reminder'
        POLL_CREATED = 'poll_created', 'Poll created'
        LOTTERY_WINNER = 'lottery_winner', 'Lottery winner'
        LOTTERY_DRAWN = 'lottery_drawn', 'Lottery drawn'
        TASK_ASSIGNED = 'task_assigned', 'Task assigned'
        TASK_CONFIRMED = 'task_confirmed', 'Task confirmed'
        MEMBER_JOINED = 'member_joined', 'Member joined'
        POOL_CREATED = 'pool_created', 'Pool created'
        CONTRIBUTION_PENDING = 'contribution_pending', 'Contribution pending'
        CONTRIBUTION_CONFIRMED = 'contribution_confirmed', 'Contribution confirmed'
        CONTRIBUTION_REJECTED = 'contribution_rejected', 'Contribution rejected'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    type = models.CharField(max_length=30, choices=Type.choices, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField(blank=True, default='')
    link = models.CharField(max_length=500, blank=True, default='')
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
    )
    is_read = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.type} -> {self.user_id}: {self.title}'
