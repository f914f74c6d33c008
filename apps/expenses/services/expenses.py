"""
Creating expenses with their splits, and nudging people to pay.
"""
import logging

from django.db import transaction

from apps.expenses.models import Expense, ExpenseReminder, ExpenseSplit
from apps.expenses.services.split_calculator import (
    calculate_custom_split,
    calculate_equal_split,
    calculate_percentage_split,
    split_total,
)
from apps.notifications.models import Notification
from apps.notifications.services import notify

logger = logging.getLogger(__name__)


def _participant_key(split):
    if split.get('user_id'):
        return ('user', split['user_id'])
    return ('guest', split['guest_id'])


def compute_shares(amount, split_type, splits):
    """
    Amount owed by each participant in *splits*.

    Parameters
    ----------
    amount : Decimal
    split_type : str
        One of ``Expense.SplitType``.
    splits : list[dict]
        Each has ``user_id`` or ``guest_id`` plus ``amount`` (custom) or
        ``percentage`` (percentage).

    Returns
    -------
    dict
        ``{(kind, id): Decimal}`` in input order.
    """
    keys = [_participant_key(split) for split in splits]

    if split_type == Expense.SplitType.CUSTOM:
        shares = calculate_custom_split({
            key: split['amount'] for key, split in zip(keys, splits)
        })
        if split_total(shares) != amount:
            logger.warning('Custom split totals %s for an expense of %s', split_total(shares), amount)
        return shares

    if split_type == Expense.SplitType.PERCENTAGE:
        return calculate_percentage_split(amount, {
            key: split['percentage'] for key, split in zip(keys, splits)
        })

    return calculate_equal_split(amount, keys)


def create_expense(group, user, data, splits):
    """
    Record an expense and its splits as one unit.

    The payer's own share is settled on creation. A failing split insert
    (for example the same participant twice) rolls the expense back and
    the ``IntegrityError`` propagates to the caller.

    Parameters
    ----------
    group : Group
    user : User
        The creator.
    data : dict
        Model fields for the expense (``amount``, ``paid_by``, ...).
    splits : list[dict]
        See ``compute_shares``.

    Returns
    -------
    Expense
    """
    shares = compute_shares(data['amount'], data['split_type'], splits)
    paid_by = data['paid_by']

    with transaction.atomic():
        expense = Expense.objects.create(group=group, created_by=user, **data)
        rows = []
        for split in splits:
            key = _participant_key(split)
            is_payer = key == ('user', paid_by.pk)
            rows.append(ExpenseSplit(
                expense=expense,
                user_id=split.get('user_id'),
                guest_id=split.get('guest_id'),
                amount=shares[key],
                percentage=split.get('percentage'),
                is_settled=is_payer,
                settled_at=expense.created_at if is_payer else None,
                settled_by=paid_by if is_payer else None,
            ))
        ExpenseSplit.objects.bulk_create(rows)

    logger.info(
        'Expense %s created in group %s: %s %s over %d splits',
        expense.pk, group.pk, expense.currency, expense.amount, len(rows),
    )

    notify(
        [split['user_id'] for split in splits if split.get('user_id') and split['user_id'] != user.pk],
        Notification.Type.EXPENSE_ADDED,
        title='New Expense',
        message=f'{user.name} added "{expense.description}" ({expense.currency} {expense.amount})',
        link=f'/groups/{group.pk}/expenses',
        group=group,
    )
    return expense


def send_reminder(expense, user, to_user, message=''):
    """Record a payment reminder and notify its recipient."""
    message = message.strip()
    reminder = ExpenseReminder.objects.create(
        expense=expense,
        from_user=user,
        to_user=to_user,
        message=message,
    )

    if message:
        body = f'{user.name}: "{message}"'
    else:
        body = f'{user.name} sent you a reminder for "{expense.description}"'

    notify(
        [to_user.pk],
        Notification.Type.EXPENSE_REMINDER,
        title='Payment Reminder',
        message=body,
        link=f'/groups/{expense.group_id}/expenses',
        group=expense.group,
    )
    return reminder
