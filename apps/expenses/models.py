"""
Models for the Expenses app.
"""
from django.conf import settings
from django.db import models
from django.db.models import Q

from common.models import TimestampedModel


class Expense(TimestampedModel):
    """
    An expense recorded within a group, optionally tied to a trip.

    ``amount``, ``paid_by`` and ``split_type`` are fixed once the splits
    exist; only the descriptive fields can be edited afterwards.
    """
    class Category(models.TextChoices):
        FOOD = 'food', 'Food & Drinks'
        TRANSPORT = 'transport', 'Transport'
        ACCOMMODATION = 'accommodation', 'Accommodation'
        ACTIVITIES = 'activities', 'Activities'
        SHOPPING = 'shopping', 'Shopping'
        UTILITIES = 'utilities', 'Utilities'
        ENTERTAINMENT = 'entertainment', 'Entertainment'
        OTHER = 'other', 'Other'

    class SplitType(models.TextChoices):
        EQUAL = 'equal', 'Equal'
        CUSTOM = 'custom', 'Custom Amounts'
        PERCENTAGE = 'percentage', 'Percentage'

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses',
    )
    trip = models.ForeignKey(
        'trips.Trip',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses',
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(
        max_length=3,
        default='USD',
        help_text='ISO 4217 currency code.',
    )
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.OTHER,
        db_index=True,
    )
    split_type = models.CharField(
        max_length=20,
        choices=SplitType.choices,
        default=SplitType.EQUAL,
    )
    paid_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='paid_expenses',
    )
    receipt_url = models.URLField(max_length=500, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    expense_date = models.DateField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_expenses',
    )

    class Meta:
        db_table = 'expenses'
        ordering = ['-expense_date', '-created_at']
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='expense_amount_positive'),
        ]

    def __str__(self):
        return f'{self.description} - {self.currency} {self.amount}'


class ExpenseGuest(TimestampedModel):
    """
    Someone without an account who can share in an expense but never pay.
    """
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expense_guests',
    )
    name = models.CharField(max_length=100)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_guests',
    )

    class Meta:
        db_table = 'expense_guests'
        ordering = ['name']

    def __str__(self):
        return f'{self.name} (guest)'


class ExpenseSplit(TimestampedModel):
    """
    One participant's share of an expense. The participant is either a
    registered user or a guest, never both.
    """
    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='splits',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='expense_splits',
    )
    guest = models.ForeignKey(
        ExpenseGuest,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='splits',
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text='Amount owed by this participant in the expense currency.',
    )
    percentage = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
    )
    is_settled = models.BooleanField(default=False, db_index=True)
    settled_at = models.DateTimeField(null=True, blank=True)
    settled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'expense_splits'
        ordering = ['created_at']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(user__isnull=False, guest__isnull=True)
                    | Q(user__isnull=True, guest__isnull=False)
                ),
                name='expense_split_one_participant',
            ),
            models.UniqueConstraint(
                fields=['expense', 'user'],
                condition=Q(user__isnull=False),
                name='unique_expense_split_user',
            ),
            models.UniqueConstraint(
                fields=['expense', 'guest'],
                condition=Q(guest__isnull=False),
                name='unique_expense_split_guest',
            ),
        ]

    def __str__(self):
        who = self.user or self.guest
        state = 'settled' if self.is_settled else 'owes'
        return f'{who} {state} {self.amount} for {self.expense}'


class ExpenseReminder(TimestampedModel):
    """
    A nudge sent from one member to another about an unpaid share.
    """
    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='reminders',
    )
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_reminders',
    )
    to_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='received_reminders',
    )
    message = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'expense_reminders'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.from_user} -> {self.to_user} re {self.expense}'
