"""
Settling and unsettling expense splits.

A split is either unsettled or settled; every transition stamps or clears
``settled_at`` and ``settled_by`` together.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.expenses.models import ExpenseSplit

logger = logging.getLogger(__name__)


def settle_split(split, user):
    split.is_settled = True
    split.settled_at = timezone.now()
    split.settled_by = user
    split.save(update_fields=['is_settled', 'settled_at', 'settled_by', 'updated_at'])
    logger.info('Split %s settled by %s', split.pk, user.pk)
    return split


def unsettle_split(split):
    split.is_settled = False
    split.settled_at = None
    split.settled_by = None
    split.save(update_fields=['is_settled', 'settled_at', 'settled_by', 'updated_at'])
    logger.info('Split %s reopened', split.pk)
    return split


def settle_up(group_id, user, with_user_id):
    """
    Settle everything outstanding between *user* and one counterpart.

    Covers both directions: the caller's shares of expenses the
    counterpart paid, and the counterpart's shares of expenses the caller
    paid. Splits involving anyone else are untouched.

    Parameters
    ----------
    group_id : UUID
    user : User
        The caller, recorded as ``settled_by``.
    with_user_id : UUID

    Returns
    -------
    int
        Number of splits settled.
    """
    now = timezone.now()
    stamp = {'is_settled': True, 'settled_at': now, 'settled_by': user, 'updated_at': now}
    unsettled = ExpenseSplit.objects.filter(expense__group_id=group_id, is_settled=False)

    with transaction.atomic():
        owed_by_me = unsettled.filter(
            expense__paid_by_id=with_user_id,
            user=user,
        ).update(**stamp)
        owed_to_me = unsettled.filter(
            expense__paid_by=user,
            user_id=with_user_id,
        ).update(**stamp)

    logger.info(
        'Settle-up in group %s between %s and %s: %d + %d splits',
        group_id, user.pk, with_user_id, owed_by_me, owed_to_me,
    )
    return owed_by_me + owed_to_me
