"""
Models for the Pools app.
"""
from decimal import Decimal

from django.conf import settings
from django.db import models

from common.models import TimestampedModel


class ContributionPool(TimestampedModel):
    """
    A shared money goal for a group, such as a cabin deposit.

    ``current_amount`` is the sum of confirmed contributions and is kept
    in step by ``apps.pools.services.refresh_totals``.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        PAUSED = 'paused', 'Paused'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='pools',
    )
    trip = models.ForeignKey(
        'trips.Trip',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='pools',
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    goal_amount = models.DecimalField(max_digits=12, decimal_places=2)
    current_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    currency = models.CharField(max_length=3, default='USD')
    deadline = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    per_person_target = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    allow_custom_amounts = models.BooleanField(default=True)
    require_confirmation = models.BooleanField(default=False)
    is_private = models.BooleanField(
        default=False,
        help_text='Only pool members can see a private pool.',
    )
    payment_methods = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_pools',
    )

    class Meta:
        db_table = 'contribution_pools'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.title} ({self.current_amount}/{self.goal_amount} {self.currency})'

    @property
    def amount_remaining(self):
        return max(Decimal('0'), self.goal_amount - self.current_amount)


class PoolMember(TimestampedModel):
    pool = models.ForeignKey(
        ContributionPool,
        on_delete=models.CASCADE,
        related_name='members',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='pool_memberships',
    )
    target_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_contributed = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    is_exempt = models.BooleanField(default=False)
    exempt_reason = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        db_table = 'pool_members'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['pool', 'user'], name='unique_pool_member'),
        ]

    def __str__(self):
        return f'{self.user} in {self.pool}'

    @property
    def remaining(self):
        target = self.target_amount or Decimal('0')
        return max(Decimal('0'), target - self.total_contributed)


class PoolContribution(TimestampedModel):
    """
    Money a member says they put in. Pending until the pool creator
    confirms it when the pool requires confirmation.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        REJECTED = 'rejected', 'Rejected'
        REFUNDED = 'refunded', 'Refunded'

    class PaymentMethod(models.TextChoices):
        VENMO = 'venmo', 'Venmo'
        ZELLE = 'zelle', 'Zelle'
        PAYPAL = 'paypal', 'PayPal'
        CASH = 'cash', 'Cash'
        BANK = 'bank', 'Bank Transfer'
        OTHER = 'other', 'Other'

    pool = models.ForeignKey(
        ContributionPool,
        on_delete=models.CASCADE,
        related_name='contributions',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='pool_contributions',
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        blank=True,
        default='',
    )
    payment_reference = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    confirmed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True, default='')
    notes = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'pool_contributions'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.user} {self.amount} to {self.pool} ({self.status})'
