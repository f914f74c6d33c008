"""
Custom User model for the Rally application.
"""
import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Extended User model with profile fields shown next to expenses,
    votes and notifications.

    Uses email as the primary login identifier instead of username.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    email = models.EmailField(
        unique=True,
        db_index=True,
        error_messages={
            'unique': 'A user with that email already exists.',
        },
    )
    display_name = models.CharField(
        max_length=100,
        blank=True,
        default='',
        help_text='Short name shown to other group members.',
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        default='',
        help_text='Phone number with country code.',
    )
    avatar = models.URLField(
        max_length=500,
        blank=True,
        default='',
        help_text='URL to the user avatar image.',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name']

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.name} ({self.email})'

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'.strip()

    @property
    def name(self):
        """Name used in notifications: display name, then full name, then email."""
        return self.display_name or self.full_name or self.email
