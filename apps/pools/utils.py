"""
Display helpers for contribution pools: progress, status label and
deadline wording.
"""
from decimal import Decimal

from django.utils import timezone


def percent_complete(current_amount, goal_amount):
    """Progress towards the goal as a percentage, not capped at 100."""
    if not goal_amount or goal_amount <= 0:
        return 0.0
    return round(float(Decimal(current_amount) / Decimal(goal_amount) * 100), 1)


def pool_status_label(pool):
    """
    Short label for a pool card.

    Closed states win over progress; an active pool reads "Goal Reached!"
    from 100% and "Almost There!" from 80%.
    """
    if pool.status == 'completed':
        return 'Completed'
    if pool.status == 'cancelled':
        return 'Cancelled'
    if pool.status == 'paused':
        return 'Paused'

    percent = percent_complete(pool.current_amount, pool.goal_amount)
    if percent >= 100:
        return 'Goal Reached!'
    if percent >= 80:
        return 'Almost There!'
    return 'Active'


def deadline_info(deadline, today=None):
    """
    Days left until *deadline* with an urgency flag and a label.

    Returns
    -------
    dict
        ``{'days_remaining': int | None, 'is_urgent': bool, 'label': str}``
    """
    if deadline is None:
        return {'days_remaining': None, 'is_urgent': False, 'label': 'No deadline'}

    today = today or timezone.localdate()
    days = (deadline - today).days

    if days < 0:
        return {'days_remaining': days, 'is_urgent': True, 'label': 'Past deadline'}
    if days == 0:
        return {'days_remaining': 0, 'is_urgent': True, 'label': 'Due today!'}
    if days <= 30:
        unit = 'day' if days == 1 else 'days'
        return {'days_remaining': days, 'is_urgent': days <= 7, 'label': f'{days} {unit} left'}

    months = days // 30
    unit = 'month' if months == 1 else 'months'
    return {'days_remaining': days, 'is_urgent': False, 'label': f'{months} {unit} left'}
