"""
Constants shared by the Trips app: kanban columns, task labels,
dependent types and age groups.
"""
from django.db import models


class TaskColumn(models.TextChoices):
    TODO = 'todo', 'To Do'
    IN_PROGRESS = 'in-progress', 'In Progress'
    BOOKED = 'booked', 'Booked'
    CONFIRMED = 'confirmed', 'Confirmed'


class TaskLabel(models.TextChoices):
    URGENT = 'urgent', 'Urgent'
    FLIGHTS = 'flights', 'Flights'
    HOTEL = 'hotel', 'Hotel'
    ACTIVITIES = 'activities', 'Activities'
    TRANSPORT = 'transport', 'Transport'
    FOOD = 'food', 'Food'
    ADMIN = 'admin', 'Admin'
    OPTIONAL = 'optional', 'Optional'


class DependentType(models.TextChoices):
    CHILD = 'child', 'Child (my kid)'
    SPOUSE = 'spouse', 'Spouse/Partner'
    PARTNER = 'partner', 'Partner'
    FRIEND = 'friend', 'Friend (adult)'
    FRIENDS_CHILD = 'friends_child', "Friend's Child"
    OTHER_FAMILY = 'other_family', 'Other Family'
    OTHER = 'other', 'Other'


class AgeGroup(models.TextChoices):
    ADULT = 'adult', 'Adult'
    TEEN = 'teen', 'Teen'
    CHILD = 'child', 'Child'
    INFANT = 'infant', 'Infant'


AGE_GROUP_RANGES = {
    AgeGroup.ADULT: '18+',
    AgeGroup.TEEN: '13-17',
    AgeGroup.CHILD: '3-12',
    AgeGroup.INFANT: '0-2',
}
