"""
Who owes whom inside a group, aggregated from unsettled splits.

Nothing here is cached; every call reads the current split rows.
"""
from decimal import Decimal

from django.db.models import Sum

from apps.expenses.models import ExpenseSplit

ZERO = Decimal('0.00')


def _unsettled(group_id):
    return ExpenseSplit.objects.filter(expense__group_id=group_id, is_settled=False)


def get_user_balance(group_id, user):
    """
    Totals for *user* in a group.

    Returns
    -------
    dict
        ``you_owe``: the user's unsettled shares of other people's
        expenses. ``you_are_owed``: unsettled shares (guests included) of
        expenses the user paid. ``net_balance``: the difference.
    """
    splits = _unsettled(group_id)

    you_are_owed = splits.filter(
        expense__paid_by=user,
    ).exclude(user=user).aggregate(total=Sum('amount'))['total'] or ZERO

    you_owe = splits.filter(
        user=user,
    ).exclude(expense__paid_by=user).aggregate(total=Sum('amount'))['total'] or ZERO

    return {
        'you_owe': you_owe,
        'you_are_owed': you_are_owed,
        'net_balance': you_are_owed - you_owe,
    }


def get_member_balances(group_id, user):
    """
    Net position between *user* and each other member.

    Returns
    -------
    list[dict]
        ``{other_user_id, amount, direction}`` with ``direction`` either
        ``owes_you`` or ``you_owe``; settled-out pairs are left out.
        Largest amount first.
    """
    splits = _unsettled(group_id)
    net = {}

    owed_to_me = (
        splits.filter(expense__paid_by=user, user__isnull=False)
        .exclude(user=user)
        .values('user_id')
        .annotate(total=Sum('amount'))
    )
    for row in owed_to_me:
        net[row['user_id']] = net.get(row['user_id'], ZERO) + row['total']

    owed_by_me = (
        splits.filter(user=user)
        .exclude(expense__paid_by=user)
        .values('expense__paid_by_id')
        .annotate(total=Sum('amount'))
    )
    for row in owed_by_me:
        other = row['expense__paid_by_id']
        net[other] = net.get(other, ZERO) - row['total']

    balances = [
        {
            'other_user_id': other,
            'amount': abs(amount),
            'direction': 'owes_you' if amount > 0 else 'you_owe',
        }
        for other, amount in net.items()
        if amount != 0
    ]
    balances.sort(key=lambda balance: balance['amount'], reverse=True)
    return balances
