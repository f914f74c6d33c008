"""
Models for the Trips app.
"""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from apps.trips.constants import AgeGroup, DependentType, TaskColumn
from common.models import TimestampedModel


class Trip(TimestampedModel):
    """
    An outing or trip planned within a group.
    """
    class Status(models.TextChoices):
        PLANNING = 'planning', 'Planning'
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='trips',
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    location = models.CharField(max_length=255, blank=True, default='')
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PLANNING,
        db_index=True,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_trips',
    )

    class Meta:
        db_table = 'trips'
        ordering = ['-start_date', '-created_at']

    def __str__(self):
        return self.name

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError('End date must be after start date.')


class TripTask(TimestampedModel):
    """
    A card on a trip's planning board, ordered by ``sort_order`` within
    its column.
    """
    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='tasks',
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    column_id = models.CharField(
        max_length=20,
        choices=TaskColumn.choices,
        default=TaskColumn.TODO,
        db_index=True,
    )
    sort_order = models.PositiveIntegerField(default=0)
    labels = models.JSONField(default=list, blank=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks',
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    due_date = models.DateField(null=True, blank=True)
    linked_expense = models.ForeignKey(
        'expenses.Expense',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tasks',
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_tasks',
    )

    class Meta:
        db_table = 'trip_tasks'
        ordering = ['column_id', 'sort_order']

    def __str__(self):
        return f'{self.title} [{self.column_id} #{self.sort_order}]'


class TripDependent(TimestampedModel):
    """
    Someone without an account (a child, a friend) who comes along on a
    trip under a responsible group member.
    """
    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='dependents',
    )
    name = models.CharField(max_length=100)
    type = models.CharField(
        max_length=20,
        choices=DependentType.choices,
        default=DependentType.OTHER,
    )
    age_group = models.CharField(
        max_length=10,
        choices=AgeGroup.choices,
        default=AgeGroup.ADULT,
    )
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    responsible_member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='dependents',
    )
    notes = models.TextField(blank=True, default='')
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'trip_dependents'
        ordering = ['responsible_member', 'type', 'name']

    def __str__(self):
        suffix = f', {self.age}' if self.age else ''
        return f'{self.name} ({self.age_group}{suffix})'
